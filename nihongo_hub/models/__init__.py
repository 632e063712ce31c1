"""
데이터베이스 모델 패키지
"""
from nihongo_hub.models.user import User
from nihongo_hub.models.slide import Slide, SlidePageStat, DifficultyLevel
from nihongo_hub.models.knowhow import Article, Tag, article_tags
from nihongo_hub.models.discussion import Comment, Reply, CommentKind, CommentParentType
from nihongo_hub.models.rating import Rating, RatingTargetKind, SCORE_RANGES, SLIDE_LEVEL_PAGE_INDEX
from nihongo_hub.models.reaction import Reaction, ReactionKind

__all__ = [
    "User",
    "Slide",
    "SlidePageStat",
    "DifficultyLevel",
    "Article",
    "Tag",
    "article_tags",
    "Comment",
    "Reply",
    "CommentKind",
    "CommentParentType",
    "Rating",
    "RatingTargetKind",
    "SCORE_RANGES",
    "SLIDE_LEVEL_PAGE_INDEX",
    "Reaction",
    "ReactionKind",
]
