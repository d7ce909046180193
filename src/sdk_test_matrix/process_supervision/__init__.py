"""Process supervision exports."""

from .process_supervisor import ProcessHandle, ProcessSupervisor, StartError

__all__ = ["ProcessHandle", "ProcessSupervisor", "StartError"]
