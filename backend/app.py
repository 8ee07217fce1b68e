from fastapi import APIRouter, Depends, FastAPI, HTTPException
from pydantic import BaseModel
import logging
import json
import time
import uuid
import os
import sys
from typing import List, Optional

import redis

# Add current directory to path so imports work
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from cache_control.config import settings
from cache_control.actions import registry
from cache_control.exceptions import PathEscapeError, UnknownActionError
from cache_control.operation_log import FileLogSink
from cache_control.tools import CacheControlTools, build_tools

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("cache_control")

app = FastAPI(title=settings.PROJECT_NAME)
router = APIRouter(prefix=f"{settings.API_V1_STR}/cache")

redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
log_sink = FileLogSink(settings.LOG_DIR)


def get_tools() -> CacheControlTools:
    return build_tools(settings, redis_client=redis_client, log_sink=log_sink)


class ActionRequest(BaseModel):
    silent: bool = False

class RefreshRequest(BaseModel):
    token: Optional[str] = None

class ActionInfo(BaseModel):
    name: str
    title: str

class ActionResult(BaseModel):
    action: str
    messages: List[str]

class AssetVersion(BaseModel):
    category: str
    token: str


@router.get("/directories")
def cache_directories(tools: CacheControlTools = Depends(get_tools)):
    return {
        "root_url": settings.CACHE_ROOT_URL,
        "directories": tools.cache_directories(),
    }

@router.get("/actions", response_model=List[ActionInfo])
def list_actions():
    return [ActionInfo(name=a.name, title=a.title) for a in registry.actions()]

@router.post("/actions/{name}", response_model=ActionResult)
def run_action(name: str, req: Optional[ActionRequest] = None, tools: CacheControlTools = Depends(get_tools)):
    request_id = uuid.uuid4().hex
    t0 = time.perf_counter()
    silent = bool(req and req.silent)
    logger.info(json.dumps({"event": "api_action_start", "request_id": request_id, "action": name, "silent": silent}, ensure_ascii=False))

    if silent:
        tools = tools.silent()
    try:
        messages = registry.execute(name, tools)
    except UnknownActionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PathEscapeError as e:
        logger.error(json.dumps({"event": "api_action_path_escape", "request_id": request_id, "path": e.path}, ensure_ascii=False))
        raise HTTPException(status_code=400, detail=str(e))

    elapsed_ms = round((time.perf_counter() - t0) * 1000, 2)
    logger.info(json.dumps({"event": "api_action_end", "request_id": request_id, "ms": elapsed_ms, "messages": len(messages)}, ensure_ascii=False))
    return ActionResult(action=name, messages=messages)

@router.get("/asset-versions/{category}", response_model=AssetVersion)
def get_asset_version(category: str, tools: CacheControlTools = Depends(get_tools)):
    return AssetVersion(category=category, token=tools.get_asset_version(category))

@router.post("/asset-versions/{category}", response_model=AssetVersion)
def refresh_asset_version(category: str, req: Optional[RefreshRequest] = None, tools: CacheControlTools = Depends(get_tools)):
    token = tools.refresh_asset_version(category, req.token if req else None)
    return AssetVersion(category=category, token=token)

@router.delete("/asset-versions")
def clear_asset_versions(tools: CacheControlTools = Depends(get_tools)):
    tools.log.start()
    deleted = tools.clear_all_asset_versions()
    return {"deleted": deleted, "messages": tools.get_new_log_messages()}

app.include_router(router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
