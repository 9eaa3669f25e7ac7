"""
Modules package initialization.
This package contains the functional modules of the admin panel.
"""

from postdesk.modules import admin_users
from postdesk.modules import auth
from postdesk.modules import categories
from postdesk.modules import posts
from postdesk.modules import media
