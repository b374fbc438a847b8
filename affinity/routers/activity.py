import logging

from fastapi import APIRouter, Depends, HTTPException, status

from affinity.core.errors import AffinityError, RecomputeTimeout, StoreUnavailable
from affinity.models import ActivityEvent, ActivityIn, ActivityRemove, RecomputeOut, RemoveOut
from affinity.services.activity import ActivityService, get_activity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/activity", tags=["activity"])


@router.post("", response_model=ActivityEvent, status_code=status.HTTP_201_CREATED)
async def log_activity(body: ActivityIn, service: ActivityService = Depends(get_activity_service)):
    try:
        return await service.log_action(body.user, body.item, body.itemType, body.action)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AffinityError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("", response_model=RemoveOut)
async def remove_activity(body: ActivityRemove, service: ActivityService = Depends(get_activity_service)):
    try:
        deleted = await service.remove_action(body.user, body.item, body.action)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AffinityError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return RemoveOut(deleted=deleted)


@router.post("/recompute", response_model=RecomputeOut)
async def recompute_item_weights(service: ActivityService = Depends(get_activity_service)):
    try:
        summary = await service.recompute_user_item_weights()
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except RecomputeTimeout as e:
        raise HTTPException(status_code=504, detail=str(e))
    except Exception as e:
        logger.exception("Unable to calculate user item weights")
        raise HTTPException(status_code=500, detail=str(e))
    return RecomputeOut(status="ok", users=summary.users)
