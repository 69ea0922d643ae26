"""Components for the Query Dashboard application"""
from .dashboard import Dashboard
from .chat_manager import ChatManager
from .log_viewer import LogViewer

__all__ = ['Dashboard', 'ChatManager', 'LogViewer']
