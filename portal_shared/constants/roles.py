from enum import Enum


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    DOCTOR = "doctor"
    PENDING_DOCTOR = "pending_doctor"
    PATIENT = "patient"
