# Import all models here so Alembic can detect them
from postdesk.db.session import Base

# Import all models below
from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.categories.models.category import Category
from postdesk.modules.posts.models.post import Post
