# couponstack/settings/routes.py
from ..errors import NotFoundError
from ..extensions import db
from ..model import LocalStoreSetting
from ..services.settings_service import create_local_store, update_local_store
from ..utils.api import ok
from ..utils.decorators import json_body
from . import bp

def _get_or_404(store_id: int) -> LocalStoreSetting:
    s = db.session.get(LocalStoreSetting, store_id)
    if not s:
        raise NotFoundError("local store not found")
    return s

@bp.get("/local-stores")
def list_local_stores():
    rows = LocalStoreSetting.query.order_by(LocalStoreSetting.position.asc(), LocalStoreSetting.id.asc()).all()
    return ok("local stores", [s.as_api() for s in rows])

@bp.post("/local-stores")
def add_local_store():
    s = create_local_store(json_body())
    db.session.commit()
    return ok("Local store added", s.as_api(), 201)

@bp.put("/local-stores/<int:store_id>")
@bp.patch("/local-stores/<int:store_id>")
def edit_local_store(store_id: int):
    s = update_local_store(_get_or_404(store_id), json_body())
    db.session.commit()
    return ok("Local store updated", s.as_api())

@bp.delete("/local-stores/<int:store_id>")
def delete_local_store(store_id: int):
    db.session.delete(_get_or_404(store_id))
    db.session.commit()
    return ok("Local store deleted", {"id": store_id})
