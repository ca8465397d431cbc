"""
Database Models Package for Zhuifeng

Avoid importing submodules at package import time to prevent circular imports
and mismatched ORM initializations. Import models directly from their modules:

    from backend.models.user import User
    from backend.models.transaction import Transaction
    from backend.models.prediction import Prediction, PredictionOption, Vote
    from backend.models.community import Post, Comment, PostLike
"""

__all__ = []
