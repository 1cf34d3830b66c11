from app.models.medicine import Medicine
from app.models.setting import Setting
from app.models.admin_session import AdminSession

__all__ = ["Medicine", "Setting", "AdminSession"]
