from .commands import CommandShell, run_shell

__all__ = ["CommandShell", "run_shell"]
