from fastapi import APIRouter

from admission_portal.modules.admissions.admin_router import router as admin_router
from admission_portal.modules.admissions.router import router as student_router
from admission_portal.modules.auth import router as auth_router
from admission_portal.modules.files.router import router as files_router
from admission_portal.modules.master_data.admin_router import router as master_data_admin_router
from admission_portal.modules.master_data.router import router as master_data_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(student_router, prefix="/student", tags=["Student Admissions"])

api_router.include_router(admin_router, prefix="/admin", tags=["Admin - Admissions"])

api_router.include_router(
    master_data_admin_router, prefix="/admin", tags=["Admin - Master Data"]
)

api_router.include_router(master_data_router, prefix="/master", tags=["Master Data"])

api_router.include_router(files_router, prefix="/files", tags=["Files"])
