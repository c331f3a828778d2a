"""Models package."""

from .user import User
from .channel import Channel
from .video import Video
from .content_idea import ContentIdea
from .trending_topic import TrendingTopic
from .competitor import Competitor
from .insight import Insight
