"""
Views for django-storyblog.

All endpoints answer JSON. Mutations carry a notification describing
their outcome; failures leave the data as it was before the request.
"""
import logging
from itertools import groupby

from django.core.paginator import Paginator
from django.db import DatabaseError, transaction
from django.db.models import Count
from django.http import Http404, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import dateformat, timezone
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from . import notifications
from .conf import blog_settings
from .forms import CommentForm, PostForm
from .identity import get_bearer_token, get_identity
from .models import Comment, Post, PostView, Profile, Reaction
from .storage import UploadError, get_uploader
from .visitors import get_visitor_id

logger = logging.getLogger(__name__)


def serialize_post(post, identity, detail=False):
    data = {
        "id": post.pk,
        "title": post.title,
        "excerpt": post.excerpt,
        "image_url": post.image_url,
        "created_at": post.created_at.isoformat(),
        "is_hidden": post.is_hidden,
        "author_id": post.author_id,
        "author_name": post.author_name,
        "view_count": getattr(post, "num_views", None),
        "can_edit": post.can_edit(identity),
    }
    if data["view_count"] is None:
        data["view_count"] = post.view_count
    if detail:
        data["content"] = post.content
        data["paragraphs"] = post.paragraphs
    return data


def serialize_comment(comment, identity):
    return {
        "id": comment.pk,
        "post_id": comment.post_id,
        "author_name": comment.author_name,
        "author_id": comment.author_id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat(),
        "can_delete": comment.can_delete(identity),
    }


def serialize_profile(profile):
    data = {
        "user_id": profile.user_id,
        "full_name": profile.full_name,
        "initials": profile.initials,
        "created_at": profile.created_at.isoformat(),
    }
    if hasattr(profile, "post_count"):
        data["post_count"] = profile.post_count
    return data


def post_queryset():
    return Post.objects.select_related("author").annotate(num_views=Count("views"))


def get_visible_post(request, pk):
    post = get_object_or_404(Post.objects.select_related("author"), pk=pk)
    if not post.can_view(get_identity(request)):
        raise Http404("Post not found")
    return post


def form_error(request, form, missing_description):
    if getattr(form, "image_too_large", False):
        return notifications.error(
            request,
            "File too large",
            "Please compress your image to around 400KB before uploading.",
            errors=form.errors.get_json_data(),
            cleared_fields=["image"],
        )
    if form.missing_fields:
        return notifications.error(
            request,
            "Missing fields",
            missing_description,
            errors=form.errors.get_json_data(),
        )
    return notifications.error(
        request,
        "Invalid submission",
        "Please check the highlighted fields.",
        errors=form.errors.get_json_data(),
    )


class JsonView(View):
    """Base view for the bearer-token JSON API."""

    @classmethod
    def as_view(cls, **initkwargs):
        # Authentication is by bearer token, never by cookie
        return csrf_exempt(super().as_view(**initkwargs))

    @property
    def identity(self):
        return get_identity(self.request)


class IdentityRequiredMixin:
    """Reject requests that carry no verified identity."""

    unauthenticated_title = "Not authenticated"
    unauthenticated_description = "Please sign in to continue."

    def dispatch(self, request, *args, **kwargs):
        if get_identity(request) is None:
            return notifications.error(
                request,
                self.unauthenticated_title,
                self.unauthenticated_description,
                status=401,
            )
        return super().dispatch(request, *args, **kwargs)


class PostListView(JsonView):
    """List visible posts, newest first, with optional search."""

    def get(self, request):
        identity = self.identity
        visible = post_queryset().visible_to(identity)
        query = request.GET.get("q", "")

        page = Paginator(visible.search(query), blog_settings.POSTS_PER_PAGE).get_page(
            request.GET.get("page")
        )
        featured = visible.values_list("pk", flat=True)[: blog_settings.FEATURED_POST_COUNT]

        return JsonResponse({
            "posts": [serialize_post(post, identity) for post in page],
            "featured": list(featured),
            "query": query,
            "page": page.number,
            "num_pages": page.paginator.num_pages,
            "count": page.paginator.count,
        })


class PostDetailView(JsonView):
    """Display a single post and record the visitor's view."""

    def get(self, request, pk):
        identity = self.identity
        post = get_visible_post(request, pk)

        try:
            PostView.record(post, get_visitor_id(request))
        except DatabaseError:
            logger.exception("Failed to record view of post %s", post.pk)

        comments = post.comments.all()
        return JsonResponse({
            "post": serialize_post(post, identity, detail=True),
            "reactions": Reaction.summary(post, identity.user_id if identity else None),
            "comments": [serialize_comment(c, identity) for c in comments],
        })


class PostViewCountView(JsonView):

    def get(self, request, pk):
        post = get_visible_post(request, pk)
        return JsonResponse({"post_id": post.pk, "view_count": PostView.count_for(post)})


class PostFormMixin:
    """Shared validate, upload, save flow for creating and editing posts."""

    missing_description = "Please fill in both title and content."
    failure_description = "Failed to save post. Please try again."

    def upload_image(self, image):
        if not image:
            return None
        return get_uploader().upload(image, auth_token=get_bearer_token(self.request))

    def save_form(self, form, **extra):
        """
        Validate, upload the image, then save.

        Returns (post, error_response); exactly one is None.
        """
        request = self.request
        if not form.is_valid():
            return None, form_error(request, form, self.missing_description)

        try:
            image_url = self.upload_image(form.cleaned_data.get("image"))
        except UploadError:
            logger.exception("Image upload failed")
            return None, notifications.error(
                request, "Error", "Failed to upload image. Please try again.", status=502
            )

        try:
            with transaction.atomic():
                post = form.save(commit=False)
                for field, value in extra.items():
                    setattr(post, field, value)
                if image_url:
                    post.image_url = image_url
                post.save()
        except DatabaseError:
            logger.exception("Failed to save post")
            return None, notifications.error(request, "Error", self.failure_description, status=500)

        return post, None


class PostCreateView(IdentityRequiredMixin, PostFormMixin, JsonView):
    """Publish a new post."""

    unauthenticated_description = "Please sign in to create a post."
    failure_description = "Failed to create post. Please try again."

    def post(self, request):
        identity = self.identity
        form = PostForm(request.POST, request.FILES)
        post, response = self.save_form(form, author_id=identity.user_id)
        if response is not None:
            return response

        logger.info("Post %s published by %s", post.pk, identity.user_id)
        return notifications.success(
            request,
            "Post published!",
            "Your story has been shared successfully.",
            status=201,
            post=serialize_post(post, identity, detail=True),
        )


class PostOwnerMixin(IdentityRequiredMixin):
    """Limit a post mutation to its author and admins."""

    def get_post(self, pk):
        post = get_object_or_404(Post.objects.select_related("author"), pk=pk)
        if not post.can_edit(self.identity):
            return post, notifications.error(
                self.request,
                "Not allowed",
                "Only the author or an admin can change this post.",
                status=403,
            )
        return post, None


class PostUpdateView(PostOwnerMixin, PostFormMixin, JsonView):
    """Edit an existing post, keeping its image unless replaced."""

    missing_description = "Please fill in all required fields"
    failure_description = "Failed to update post"

    def post(self, request, pk):
        post, response = self.get_post(pk)
        if response is not None:
            return response

        form = PostForm(request.POST, request.FILES, instance=post)
        post, response = self.save_form(form)
        if response is not None:
            return response

        return notifications.success(
            request,
            "Post updated successfully!",
            post=serialize_post(post, self.identity, detail=True),
        )


class PostDeleteView(PostOwnerMixin, JsonView):
    """Permanently delete a post."""

    def post(self, request, pk):
        post, response = self.get_post(pk)
        if response is not None:
            return response

        try:
            post.delete()
        except DatabaseError:
            logger.exception("Failed to delete post %s", pk)
            return notifications.error(request, "Error", "Failed to delete post", status=500)

        logger.info("Post %s deleted by %s", pk, self.identity.user_id)
        return notifications.success(request, "Post deleted successfully", post_id=pk)


class PostHiddenToggleView(PostOwnerMixin, JsonView):
    """Hide a post from listings, or bring it back."""

    def post(self, request, pk):
        post, response = self.get_post(pk)
        if response is not None:
            return response

        try:
            is_hidden = post.toggle_hidden()
        except DatabaseError:
            logger.exception("Failed to toggle visibility of post %s", pk)
            return notifications.error(
                request, "Error", "Failed to update post visibility", status=500
            )

        title = "Post hidden" if is_hidden else "Post unhidden"
        return notifications.success(request, title, post_id=pk, is_hidden=is_hidden)


class CommentListCreateView(JsonView):
    """List a post's comments or add one."""

    def get(self, request, pk):
        identity = self.identity
        post = get_visible_post(request, pk)
        comments = post.comments.all()
        return JsonResponse({
            "comments": [serialize_comment(c, identity) for c in comments],
            "count": len(comments),
        })

    def post(self, request, pk):
        identity = self.identity
        post = get_visible_post(request, pk)

        form = CommentForm(request.POST)
        if not form.is_valid():
            return form_error(request, form, "Please fill in your name and comment.")

        try:
            comment = form.save(commit=False)
            comment.post = post
            comment.author_id = identity.user_id if identity else None
            comment.save()
        except DatabaseError:
            logger.exception("Failed to add comment to post %s", post.pk)
            return notifications.error(
                request, "Error", "Failed to add comment. Please try again.", status=500
            )

        return notifications.success(
            request,
            "Comment added!",
            "Your comment has been posted.",
            status=201,
            comment=serialize_comment(comment, identity),
        )


class CommentDeleteView(IdentityRequiredMixin, JsonView):
    """Delete a comment as its author or an admin."""

    def post(self, request, pk):
        comment = get_object_or_404(Comment, pk=pk)
        if not comment.can_delete(self.identity):
            return notifications.error(
                request,
                "Not allowed",
                "Only the commenter or an admin can delete this comment.",
                status=403,
            )

        try:
            comment.delete()
        except DatabaseError:
            logger.exception("Failed to delete comment %s", pk)
            return notifications.error(request, "Error", "Failed to delete comment.", status=500)

        return notifications.success(
            request, "Comment deleted", "The comment has been removed.", comment_id=pk
        )


class ReactionToggleView(IdentityRequiredMixin, JsonView):
    """Toggle the signed-in reader's reaction on a post."""

    unauthenticated_title = "Sign in to react"
    unauthenticated_description = ""

    action_titles = {
        "created": "Reaction added",
        "changed": "Reaction updated",
        "removed": "Reaction removed",
    }

    def post(self, request, pk):
        identity = self.identity
        post = get_visible_post(request, pk)
        reaction_type = request.POST.get("reaction_type", "")

        if not reaction_type:
            return notifications.error(request, "Missing reaction", "Choose a reaction.")
        if not Reaction.is_valid_type(reaction_type):
            return notifications.error(
                request, "Unknown reaction", f"{reaction_type!r} is not a reaction."
            )

        try:
            reaction, action = Reaction.toggle(post, identity.user_id, reaction_type)
        except DatabaseError:
            logger.exception("Failed to toggle reaction on post %s", post.pk)
            return notifications.error(request, "Failed to update reaction", status=500)

        return notifications.success(
            request,
            self.action_titles[action],
            action=action,
            reaction_type=reaction.reaction_type if reaction else None,
            reactions=Reaction.summary(post, identity.user_id),
        )


class ArchiveView(JsonView):
    """Visible posts grouped by month, newest first."""

    def get(self, request):
        identity = self.identity
        posts = post_queryset().visible_to(identity).order_by("-created_at")

        def month_label(post):
            return dateformat.format(timezone.localtime(post.created_at), "F Y")

        groups = [
            {"label": label, "posts": [serialize_post(p, identity) for p in month_posts]}
            for label, month_posts in groupby(posts, key=month_label)
        ]
        return JsonResponse({"groups": groups})


class AuthorListView(JsonView):
    """Authors with visible posts, most prolific first."""

    def get(self, request):
        authors = Profile.objects.with_post_counts()
        return JsonResponse({"authors": [serialize_profile(a) for a in authors]})


class AuthorDetailView(JsonView):
    """An author's profile and visible posts."""

    def get(self, request, user_id):
        identity = self.identity
        profile = get_object_or_404(Profile, user_id=user_id)
        posts = post_queryset().filter(author=profile, is_hidden=False).order_by("-created_at")
        return JsonResponse({
            "author": serialize_profile(profile),
            "posts": [serialize_post(p, identity) for p in posts],
        })
