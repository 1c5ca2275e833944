import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ServicePackage
from ..schemas import model_to_dict
from ..seed import DEFAULT_PACKAGES, fallback_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/packages", tags=["Packages"])


@router.get("")
async def get_service_packages(db: Session = Depends(get_db)):
    try:
        packages = (
            db.query(ServicePackage)
            .filter(ServicePackage.is_active.is_(True))
            .order_by(
                ServicePackage.is_featured.desc(),
                ServicePackage.is_popular.desc(),
                ServicePackage.name,
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Get service packages error, serving defaults: {e}")
        return {"success": True, "packages": fallback_rows(ServicePackage, DEFAULT_PACKAGES)}

    return {"success": True, "packages": [model_to_dict(p) for p in packages]}
