"""
Workflows module - digest assembly and service wiring.
"""
from workflows.digest import DigestAssembler, DigestRunError, RunReport, UserOutcome, UserStatus
from workflows.factory import create_assembler

__all__ = [
    "DigestAssembler",
    "DigestRunError",
    "RunReport",
    "UserOutcome",
    "UserStatus",
    "create_assembler",
]
