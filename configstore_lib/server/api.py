from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from starlette.requests import Request
import logging

from configstore_lib.config.health import get_health
from configstore_lib.scoped import GLOBAL_SCOPE, PerPluginConfig, ScopeContext

logger = logging.getLogger(__name__)
router = APIRouter()


class SetValuePayload(BaseModel):
    value: Any = None
    scope: str = GLOBAL_SCOPE
    scope_id: Optional[str] = None


def get_config_store(request: Request) -> PerPluginConfig:
    """Resolve the configured store from application state.

    Raises HTTP 500 when the app was built without one.
    """
    store = getattr(request.app.state, 'config_store', None)
    if store is None:
        raise HTTPException(status_code=500, detail="Configuration store not configured")
    return store


@router.get('/health')
async def health(store: PerPluginConfig = Depends(get_config_store)):
    return get_health(store.store.coordinator)


@router.get('/api/config')
async def get_document(store: PerPluginConfig = Depends(get_config_store)):
    data = await store.store.get_raw()
    return dict(data)


@router.get('/api/config/{key}')
async def get_value(
    key: str,
    item_id: Optional[str] = None,
    folder_id: Optional[str] = None,
    library_id: Optional[str] = None,
    store: PerPluginConfig = Depends(get_config_store),
):
    ctx = ScopeContext(item_id=item_id, folder_id=folder_id, library_id=library_id)
    found = await store.resolve(key, ctx)
    if found is None:
        return {'key': key, 'found': False, 'scope': None, 'value': None}
    return {'key': key, 'found': True, 'scope': found.scope, 'value': found.value}


@router.put('/api/config/{key}')
async def put_value(key: str, payload: SetValuePayload, store: PerPluginConfig = Depends(get_config_store)):
    logger.debug("Setting %s at %s scope", key, payload.scope)
    await store.set_scoped(payload.scope, payload.scope_id, key, payload.value)
    return {'ok': True, 'key': key, 'scope': payload.scope}


@router.delete('/api/config/{key}')
async def delete_value(
    key: str,
    scope: str = GLOBAL_SCOPE,
    scope_id: Optional[str] = None,
    store: PerPluginConfig = Depends(get_config_store),
):
    removed = await store.unset_scoped(scope, scope_id, key)
    if not removed:
        raise HTTPException(status_code=404, detail={'error': 'not_found', 'key': key, 'scope': scope})
    return {'ok': True, 'key': key, 'scope': scope}


@router.get('/api/scopes/{scope}/{scope_id}/{key}')
async def get_scoped_value(scope: str, scope_id: str, key: str, store: PerPluginConfig = Depends(get_config_store)):
    stored_key = store.build_key(scope, scope_id, key)
    data = await store.store.get_raw()
    if stored_key not in data:
        raise HTTPException(status_code=404, detail={'error': 'not_found', 'key': stored_key})
    return {'key': stored_key, 'value': data[stored_key]}
