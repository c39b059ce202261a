"""Recipe comment threads."""

from recipe_keeper.services.comments.thread import build_comment_thread


__all__ = ["build_comment_thread"]
