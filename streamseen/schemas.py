# streamseen/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ContentType = Literal["Movie", "TV Show"]
Visibility = Literal["public", "friends", "private"]


# =========================
# Media records
# =========================

class FranchiseMovie(BaseModel):
    title: str
    year: int


class MediaRecord(BaseModel):
    """Shape shared by recommendations, watchlist items and watched items."""
    title: str = Field(min_length=1, max_length=500)
    year: int = Field(ge=1870, le=2100)
    summary: str = ""
    genre: str = ""
    streaming_service: str = ""
    reason: str = ""
    content_type: ContentType = "Movie"
    franchise_movies: Optional[List[FranchiseMovie]] = None

    model_config = ConfigDict(from_attributes=True)


class TitleInfo(BaseModel):
    """MediaRecord without streaming_service / reason."""
    title: str
    year: int
    summary: str = ""
    genre: str = ""
    content_type: ContentType = "Movie"
    franchise_movies: Optional[List[FranchiseMovie]] = None


class WatchedIn(MediaRecord):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: str = ""
    watched_date: Optional[datetime] = None


class WatchedUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: str = ""


class MoveToWatchedIn(BaseModel):
    title: str = Field(min_length=1)
    year: int
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: str = ""


class ListItemOut(MediaRecord):
    id: int
    list_kind: Literal["watchlist", "watched"]
    rating: Optional[int] = None
    comment: Optional[str] = None
    watched_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class MembershipOut(BaseModel):
    in_watchlist: bool
    in_watched: bool


# =========================
# Users
# =========================

class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    bio: Optional[str] = None
    public_profile: bool = True
    show_real_name: bool = True
    watchlist_privacy: Visibility = "friends"
    ratings_privacy: Visibility = "friends"
    share_activity: bool = True
    email_notifications: bool = False
    friend_recommendations: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PrivacyUpdate(BaseModel):
    """Partial update; only fields that are set are written."""
    bio: Optional[str] = Field(default=None, max_length=2000)
    public_profile: Optional[bool] = None
    show_real_name: Optional[bool] = None
    watchlist_privacy: Optional[Visibility] = None
    ratings_privacy: Optional[Visibility] = None
    share_activity: Optional[bool] = None
    email_notifications: Optional[bool] = None
    friend_recommendations: Optional[bool] = None


class UserStats(BaseModel):
    watchlist_count: int
    watched_count: int
    friends_count: int
    this_month_count: int


class VisibleLists(BaseModel):
    user: UserOut
    watchlist: Optional[List[ListItemOut]] = None
    watched: Optional[List[ListItemOut]] = None


# =========================
# Friends / activity
# =========================

class FriendIdIn(BaseModel):
    friend_id: str = Field(min_length=1)


class FriendshipOut(BaseModel):
    id: int
    user_id: str
    friend_id: str
    status: Literal["pending", "accepted", "declined"]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FriendRequestOut(FriendshipOut):
    # The other party: requester for incoming, target for sent requests.
    user: UserOut


class ActivityOut(BaseModel):
    id: int
    user_id: str
    type: Literal["watched", "added_to_watchlist", "rated", "friend_added"]
    title: Optional[str] = None
    year: Optional[int] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    friend_name: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[UserOut] = None

    model_config = ConfigDict(from_attributes=True)


# =========================
# Recommendations / search
# =========================

class RecommendationIn(BaseModel):
    genre: str = "Any"
    mood: str = "Any"
    platforms: List[str] = []
    content_type: ContentType = "Movie"
    series_status: Literal["Any", "Completed"] = "Any"


class StreamingSearchIn(BaseModel):
    query: str = Field(min_length=1, max_length=300)


class TitleInfoIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)


class GroundingSource(BaseModel):
    uri: str
    title: str


class SearchResult(BaseModel):
    text: str
    sources: List[GroundingSource] = []
