"""
Community forum endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.security import get_current_user, require_admin
from allone.models.community import PostType
from allone.models.user import User
from allone.schemas.common import dump, dump_list, success_response
from allone.schemas.community import (
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    ReportRequest,
)
from allone.services.community import CommunityService

router = APIRouter()


@router.get("/posts")
def list_posts(
    type: Optional[PostType] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Approved posts, pinned first"""
    posts, pagination = CommunityService.list_posts(db, type, category, page, limit)
    return success_response(dump_list(PostResponse, posts), pagination=pagination)


@router.post("/posts", status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    post = CommunityService.create_post(db, payload, current_user)
    return success_response(dump(PostResponse, post), message="Post created successfully")


@router.get("/posts/{post_id}")
def get_post(post_id: int, db: Session = Depends(get_db)):
    return success_response(dump(PostResponse, CommunityService.get_post(db, post_id)))


@router.put("/posts/{post_id}")
def update_post(
    post_id: int,
    payload: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = CommunityService.update_post(db, post_id, payload, current_user)
    return success_response(dump(PostResponse, post))


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    CommunityService.delete_post(db, post_id, current_user)
    return success_response(message="Post deleted successfully")


@router.post("/posts/{post_id}/like")
def like_post(
    post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Like or unlike a post"""
    post = CommunityService.toggle_post_like(db, post_id, current_user)
    return success_response({"likes": list(post.likes), "likeCount": post.like_count,
                             "liked": current_user.id in post.likes})


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = CommunityService.add_comment(db, post_id, payload.content, current_user)
    return success_response(dump(CommentResponse, comment), message="Comment added")


@router.post("/posts/{post_id}/comments/{comment_id}/like")
def like_comment(
    post_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = CommunityService.toggle_comment_like(db, post_id, comment_id, current_user)
    return success_response({"likes": list(comment.likes), "likeCount": comment.like_count,
                             "liked": current_user.id in comment.likes})


@router.put("/posts/{post_id}/pin")
def pin_post(post_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    post = CommunityService.toggle_pin(db, post_id, admin)
    return success_response(dump(PostResponse, post))


@router.post("/posts/{post_id}/report")
def report_post(
    post_id: int,
    payload: ReportRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService.report_post(db, post_id, payload.reason, current_user)
    return success_response(message="Post reported, thank you")
