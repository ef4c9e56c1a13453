"""
Post and view-tracking models for django-storyblog.
"""
from django.db import IntegrityError, models, transaction
from django.db.models import Q
from django.urls import reverse
from django.utils import timezone

from ..conf import blog_settings


class PostQuerySet(models.QuerySet):

    def visible_to(self, identity):
        """
        Posts an identity may see.

        Hidden posts stay visible to their author and to admins.
        """
        if identity is None:
            return self.filter(is_hidden=False)
        if identity.is_admin:
            return self.all()
        return self.filter(Q(is_hidden=False) | Q(author_id=identity.user_id))

    def search(self, query):
        """Case-insensitive match on title or content."""
        query = (query or "").strip()
        if not query:
            return self
        return self.filter(Q(title__icontains=query) | Q(content__icontains=query))


class Post(models.Model):
    """
    Blog post / story.

    Content is plain text; each non-blank line is a paragraph.
    Posts are hidden rather than deleted when an author wants them
    out of the listings, and hard-deleted otherwise.
    """

    title = models.CharField(max_length=255)
    content = models.TextField()
    image_url = models.URLField(max_length=1024, null=True, blank=True)

    # Author - references the provider identity through the profile
    author = models.ForeignKey(
        "storyblog.Profile",
        to_field="user_id",
        db_column="author_id",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posts",
    )

    is_hidden = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = PostQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "-created_at"]),
        ]

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("storyblog:post_detail", kwargs={"pk": self.pk})

    @property
    def paragraphs(self):
        """Return the non-blank lines of the content."""
        return [line.strip() for line in self.content.split("\n") if line.strip()]

    @property
    def excerpt(self):
        """Return truncated content for listings."""
        length = blog_settings.EXCERPT_LENGTH
        if len(self.content) > length:
            return self.content[:length] + "..."
        return self.content

    @property
    def author_name(self):
        if self.author:
            return self.author.full_name
        return "Anonymous"

    @property
    def view_count(self):
        return PostView.count_for(self)

    def is_authored_by(self, identity):
        return identity is not None and self.author_id == identity.user_id

    def can_edit(self, identity):
        """Authors and admins may edit, hide and delete a post."""
        if identity is None:
            return False
        return identity.is_admin or self.is_authored_by(identity)

    def can_view(self, identity):
        if not self.is_hidden:
            return True
        return self.can_edit(identity)

    def toggle_hidden(self):
        """Flip the hidden flag and return the new value."""
        self.is_hidden = not self.is_hidden
        self.save(update_fields=["is_hidden"])
        return self.is_hidden


class PostView(models.Model):
    """
    A visitor has viewed a post.

    At most one row exists per (post, visitor); the number of rows
    for a post is its view count.
    """

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name="views",
    )
    visitor_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["post", "visitor_id"],
                name="unique_post_visitor_view",
            ),
        ]

    def __str__(self):
        return f"{self.visitor_id} viewed {self.post}"

    @classmethod
    def record(cls, post, visitor_id):
        """
        Record that a visitor viewed a post.

        Returns True if this was the visitor's first view. A unique
        conflict is only treated as a duplicate when the row exists;
        other integrity failures are re-raised.
        """
        try:
            with transaction.atomic():
                cls.objects.create(post=post, visitor_id=visitor_id)
        except IntegrityError:
            if cls.objects.filter(post=post, visitor_id=visitor_id).exists():
                return False
            raise
        return True

    @classmethod
    def count_for(cls, post):
        """Return the number of distinct visitors that viewed a post."""
        return cls.objects.filter(post=post).count()
