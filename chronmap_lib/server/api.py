import logging

from fastapi import APIRouter, HTTPException, Request

from chronmap_lib.errors import SnapshotIOError
from chronmap_lib.services.resolver import resolve_registry
from .health import get_health

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_or_404(request: Request, name: str):
    store = resolve_registry(request).get(name)
    if store is None:
        raise HTTPException(status_code=404, detail={'error': 'not_found', 'message': f"No store named '{name}'"})
    return store


@router.get('/health')
async def api_health(request: Request):
    return get_health(resolve_registry(request))


@router.get('/v1/stores')
async def api_list_stores(request: Request):
    return sorted(resolve_registry(request).names())


@router.get('/v1/stores/statistics')
async def api_statistics(request: Request):
    registry = resolve_registry(request)
    return {
        'instances': len(registry),
        'total_entries': registry.total_entry_count(),
        'text': registry.statistics(),
    }


@router.post('/v1/stores/snapshot')
def api_snapshot_all(request: Request):
    return {'snapshotted': resolve_registry(request).snapshot_all()}


@router.get('/v1/stores/{name}')
async def api_store_info(request: Request, name: str):
    store = _store_or_404(request, name)
    return {
        'name': store.name,
        'size': store.size(),
        'dirty': store.is_dirty,
        'loaded_count': store.loaded_count,
        'flush_count': store.flush_count,
        'snapshot_interval_seconds': store.snapshot_interval_seconds,
    }


@router.post('/v1/stores/{name}/snapshot')
def api_snapshot_store(request: Request, name: str):
    store = _store_or_404(request, name)
    try:
        store.snapshot()
    except SnapshotIOError as e:
        logger.exception("Manual snapshot of %r failed", name)
        raise HTTPException(status_code=500, detail={'error': 'snapshot_failed', 'message': str(e)})
    return {'ok': True, 'name': name, 'flush_count': store.flush_count}
