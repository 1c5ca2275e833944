import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLES, require_roles
from ..database import get_db
from ..models import AdminSetting, User
from ..schemas import SettingUpdateRequest, model_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("")
async def get_settings(db: Session = Depends(get_db)):
    settings = db.query(AdminSetting).order_by(AdminSetting.category, AdminSetting.key).all()
    return {"success": True, "settings": [model_to_dict(s) for s in settings]}


@router.put("")
async def update_setting(
    data: SettingUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Create or update a setting by key"""
    if not data.key:
        raise HTTPException(status_code=400, detail="Setting key is required")

    setting = db.query(AdminSetting).filter(AdminSetting.key == data.key).first()
    if setting is None:
        setting = AdminSetting(key=data.key)
        db.add(setting)
        logger.info(f"⚙️ Creating setting {data.key} ({current_user.email})")
    else:
        logger.info(f"⚙️ Updating setting {data.key} ({current_user.email})")

    setting.value = data.value
    if data.description is not None:
        setting.description = data.description
    if data.category is not None:
        setting.category = data.category

    db.commit()
    db.refresh(setting)
    return {"success": True, "setting": model_to_dict(setting), "message": "Setting updated successfully"}
