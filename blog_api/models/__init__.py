from blog_api.models.admin import Admin
from blog_api.models.user import User
from blog_api.models.category import Category
from blog_api.models.post import Post
from blog_api.models.comment import Comment
from blog_api.models.subscriber import Subscriber
from blog_api.models.contact_submission import ContactSubmission, CONTACT_STATUSES

__all__ = [
    "Admin",
    "User",
    "Category",
    "Post",
    "Comment",
    "Subscriber",
    "ContactSubmission",
    "CONTACT_STATUSES",
]
