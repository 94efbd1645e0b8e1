from app.models.post import Post

__all__ = ["Post"]
