"""
Comment and Reaction models for django-storyblog.
"""
from django.db import IntegrityError, models, transaction

from ..conf import REACTION_TYPES, blog_settings


class Comment(models.Model):
    """
    Comment on a post.

    Anyone may comment under a display name. When the commenter is
    signed in the comment also records their identity so they can
    delete it later.
    """

    post = models.ForeignKey(
        "storyblog.Post",
        on_delete=models.CASCADE,
        related_name="comments",
    )
    author_name = models.CharField(max_length=blog_settings.COMMENT_AUTHOR_MAX_LENGTH)
    author = models.ForeignKey(
        "storyblog.Profile",
        to_field="user_id",
        db_column="author_id",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="comments",
    )
    content = models.TextField(max_length=blog_settings.COMMENT_MAX_LENGTH)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["post", "created_at"]),
        ]

    def __str__(self):
        return f"Comment by {self.author_name} on {self.post}"

    @property
    def preview(self):
        """Return truncated content for admin display."""
        if len(self.content) > 100:
            return self.content[:100] + "..."
        return self.content

    def can_delete(self, identity):
        """Comment authors and admins may delete a comment."""
        if identity is None:
            return False
        return identity.is_admin or self.author_id == identity.user_id


class Reaction(models.Model):
    """
    Reaction to a post (like, love, etc.).

    A reader holds at most one reaction per post.
    """

    REACTION_TYPES = REACTION_TYPES
    REACTION_CHOICES = [(r[0], r[1]) for r in REACTION_TYPES]

    post = models.ForeignKey(
        "storyblog.Post",
        on_delete=models.CASCADE,
        related_name="reactions",
    )
    visitor_id = models.CharField(max_length=255)
    reaction_type = models.CharField(
        max_length=20,
        choices=REACTION_CHOICES,
        default="like",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["post", "visitor_id"],
                name="unique_post_visitor_reaction",
            ),
        ]

    def __str__(self):
        return f"{self.visitor_id} reacted {self.reaction_type} to {self.post}"

    @property
    def emoji(self):
        """Return the emoji for this reaction type."""
        return self.emoji_for(self.reaction_type)

    @classmethod
    def emoji_for(cls, reaction_type):
        for rtype, label, emoji in cls.REACTION_TYPES:
            if rtype == reaction_type:
                return emoji
        return "👍"

    @classmethod
    def is_valid_type(cls, reaction_type):
        return any(rtype == reaction_type for rtype, _, _ in cls.REACTION_TYPES)

    @classmethod
    def toggle(cls, post, visitor_id, reaction_type="like"):
        """
        Toggle a reaction on a post.

        If the reader has the same reaction, removes it.
        If the reader has a different reaction, changes it.
        If the reader has no reaction, adds it.

        Returns (reaction_or_none, "created" | "changed" | "removed")
        """
        if not cls.is_valid_type(reaction_type):
            raise ValueError(f"Unknown reaction type: {reaction_type!r}")

        with transaction.atomic():
            existing = (
                cls.objects.select_for_update()
                .filter(post=post, visitor_id=visitor_id)
                .first()
            )

            if existing:
                if existing.reaction_type == reaction_type:
                    existing.delete()
                    return None, "removed"
                existing.reaction_type = reaction_type
                existing.save(update_fields=["reaction_type"])
                return existing, "changed"

            try:
                with transaction.atomic():
                    reaction = cls.objects.create(
                        post=post,
                        visitor_id=visitor_id,
                        reaction_type=reaction_type,
                    )
            except IntegrityError:
                # A concurrent request inserted first; the later choice wins
                reaction = cls.objects.get(post=post, visitor_id=visitor_id)
                reaction.reaction_type = reaction_type
                reaction.save(update_fields=["reaction_type"])
                return reaction, "changed"
            return reaction, "created"

    @classmethod
    def summary(cls, post, visitor_id=None):
        """
        Count reactions on a post.

        Returns a dict with per-type counts (non-zero only, in the fixed
        reaction order), the total, and the reader's own reaction.
        """
        counts = {rtype: 0 for rtype, _, _ in cls.REACTION_TYPES}
        for rtype in cls.objects.filter(post=post).values_list("reaction_type", flat=True):
            if rtype in counts:
                counts[rtype] += 1

        own = None
        if visitor_id:
            own = (
                cls.objects.filter(post=post, visitor_id=visitor_id)
                .values_list("reaction_type", flat=True)
                .first()
            )

        return {
            "counts": [
                {"type": rtype, "label": label, "emoji": emoji, "count": counts[rtype]}
                for rtype, label, emoji in cls.REACTION_TYPES
                if counts[rtype] > 0
            ],
            "total": sum(counts.values()),
            "user_reaction": own,
        }
