import platform
import os
import stat
import logging

from . import config

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32security
        import win32api
        import win32con
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not fully installed, cannot set Windows file permissions securely.")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


def configure_logging(level: int = logging.INFO) -> None:
    """Install the application's log format on the root logger."""
    logging.basicConfig(level=level, format=config.LOG_FORMAT)


def get_default_data_dir() -> str:
    """
    Directory holding the file-backed vault store.

    RECORDVAULT_DATA_DIR overrides the default of ~/.recordvault. The
    directory is created if it does not exist.
    """
    data_dir = os.environ.get(config.DATA_DIR_ENV_VAR)
    if not data_dir:
        data_dir = os.path.join(os.path.expanduser("~"), config.CONFIG_DIR_NAME)
    os.makedirs(data_dir, exist_ok=True)
    return data_dir


def set_owner_only_permissions(filepath: str) -> bool:
    """Make a file readable/writable by its owner only."""
    if platform.system() == 'Windows':
        return _set_windows_file_permissions(filepath)
    os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
    return True


def _owner_only_dacl():
    """DACL granting read/write to the current user and nobody else."""
    user_sid, _, _ = win32security.LookupAccountName(None, win32api.GetUserName())
    dacl = win32security.ACL()
    dacl.AddAccessAllowedAce(
        win32security.ACL_REVISION,
        win32con.GENERIC_READ | win32con.GENERIC_WRITE,
        user_sid
    )
    return dacl


def _set_windows_file_permissions(filepath: str) -> bool:
    """Replace the file's DACL with an owner-only one and stop inheritance."""
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"Skipping Windows file permission setting for {filepath}: pywin32 not available.")
        return False

    security_info = (win32security.DACL_SECURITY_INFORMATION
                     | win32security.PROTECTED_DACL_SECURITY_INFORMATION)
    try:
        win32security.SetNamedSecurityInfo(
            filepath, win32security.SE_FILE_OBJECT, security_info,
            None, None, _owner_only_dacl(), None
        )
    except win32security.error as e:
        logger.warning(f"Could not restrict permissions for {filepath}: {e.strerror}")
        return False
    return True
