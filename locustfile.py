import random
import uuid

from locust import HttpUser, task, between, events

BASE_URL = "http://127.0.0.1:8080"

ITEM_TYPES = ["article", "video", "event"]
ACTIONS = ["like", "like", "like", "comment", "view"]
ITEM_IDS = [f"item-{n}" for n in range(200)]


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("=" * 60)
    print("Load testing activity logging and item weight recompute")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\n" + "=" * 60)
    print("Load testing finished")
    print("=" * 60)


class ActiveUser(HttpUser):

    wait_time = between(1, 3)

    host = BASE_URL

    def on_start(self):
        self.user_id = f"load-{uuid.uuid4().hex[:12]}"

    def _payload(self, action: str) -> dict:
        return {
            "user": self.user_id,
            "item": random.choice(ITEM_IDS),
            "itemType": random.choice(ITEM_TYPES),
            "action": action,
        }

    @task(10)
    def log_action(self):
        with self.client.post(
                "/api/v1/activity",
                json=self._payload(random.choice(ACTIONS)),
                catch_response=True,
                name="POST /activity"
        ) as response:
            if response.status_code == 201:
                response.success()
            else:
                response.failure(f"Status code: {response.status_code}")

    @task(2)
    def remove_like(self):
        body = self._payload("like")
        body.pop("itemType")
        with self.client.request(
                "DELETE",
                "/api/v1/activity",
                json=body,
                catch_response=True,
                name="DELETE /activity"
        ) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Status code: {response.status_code}")


class BatchOperator(HttpUser):

    wait_time = between(20, 40)
    host = BASE_URL

    weight = 1

    @task
    def recompute(self):
        with self.client.post(
                "/api/v1/activity/recompute",
                catch_response=True,
                name="POST /activity/recompute"
        ) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Status code: {response.status_code}: {response.text}")
