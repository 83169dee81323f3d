# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .notifications.state import *
from .notifications.notification import *
from .notifications.preferences import *
from .settings.settings import *
from .devices.device import *
