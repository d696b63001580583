from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from contextlib import aclosing
import json

from forage.schemas.forageable import Forageable, ForageableIn
from forage.viewmodels.forageable_viewmodel import ForageableViewModel

router = APIRouter()


def get_viewmodel(request: Request) -> ForageableViewModel:
    return request.app.state.forageable_viewmodel


async def _current(vm: ForageableViewModel) -> list[Forageable]:
    # ライブストリームの先頭（現在値）だけを取り出す
    async with aclosing(vm.observe_all()) as snapshots:
        return await anext(snapshots)


async def _find(vm: ForageableViewModel, forageable_id: int) -> Forageable:
    for f in await _current(vm):
        if f.id == forageable_id:
            return f
    raise HTTPException(status_code=404, detail="forageable not found")


def _ndjson(stream, encode):
    async def _gen():
        async with aclosing(stream):
            async for item in stream:
                yield json.dumps(encode(item), ensure_ascii=False) + "\n"
    return StreamingResponse(_gen(), media_type="application/x-ndjson")


@router.get("/ping")
def ping():
    return {"ok": True, "router": "forageables"}


@router.get("")
@router.get("/")
async def list_forageables(vm: ForageableViewModel = Depends(get_viewmodel)) -> list[Forageable]:
    return await _current(vm)


@router.get("/stream")
async def stream_forageables(vm: ForageableViewModel = Depends(get_viewmodel)):
    return _ndjson(vm.observe_all(), lambda snapshot: [f.model_dump() for f in snapshot])


@router.get("/{forageable_id}")
async def get_forageable(forageable_id: int, vm: ForageableViewModel = Depends(get_viewmodel)) -> Forageable:
    return await _find(vm, forageable_id)


@router.get("/{forageable_id}/stream")
async def stream_forageable(forageable_id: int, vm: ForageableViewModel = Depends(get_viewmodel)):
    return _ndjson(vm.observe_one(forageable_id), lambda f: f.model_dump())


@router.post("", status_code=202)
@router.post("/", status_code=202)
async def add_forageable(payload: ForageableIn, vm: ForageableViewModel = Depends(get_viewmodel)):
    if not vm.is_valid_entry(payload.name, payload.address):
        raise HTTPException(status_code=400, detail="name and address are required")
    vm.add_forageable(payload.name, payload.address, payload.in_season, payload.notes)
    return {"ok": True}


@router.put("/{forageable_id}", status_code=202)
async def update_forageable(
    forageable_id: int, payload: ForageableIn, vm: ForageableViewModel = Depends(get_viewmodel)
):
    if not vm.is_valid_entry(payload.name, payload.address):
        raise HTTPException(status_code=400, detail="name and address are required")
    vm.update_forageable(forageable_id, payload.name, payload.address, payload.in_season, payload.notes)
    return {"ok": True}


@router.delete("/{forageable_id}", status_code=202)
async def delete_forageable(forageable_id: int, vm: ForageableViewModel = Depends(get_viewmodel)):
    vm.delete_forageable(await _find(vm, forageable_id))
    return {"ok": True}
