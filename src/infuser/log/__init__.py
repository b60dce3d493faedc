from .run_log import LogMode, RunLog

__all__ = [
    'LogMode',
    'RunLog',
]
