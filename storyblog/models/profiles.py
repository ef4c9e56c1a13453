"""
Profile and role models for django-storyblog.

Identities live in an external provider; a Profile mirrors the
provider's identifier and display name so posts and comments can
reference their authors.
"""
from django.db import models
from django.db.models import Count, Q


class ProfileQuerySet(models.QuerySet):

    def with_post_counts(self):
        """Authors with at least one visible post, most prolific first."""
        return (
            self.annotate(post_count=Count("posts", filter=Q(posts__is_hidden=False)))
            .filter(post_count__gt=0)
            .order_by("-post_count", "full_name")
        )


class Profile(models.Model):
    """
    Public profile of an identity issued by the identity provider.

    Upserted whenever a verified identity makes a request.
    """

    user_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stable identifier assigned by the identity provider",
    )
    full_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ProfileQuerySet.as_manager()

    class Meta:
        ordering = ["full_name"]

    def __str__(self):
        return self.full_name

    @property
    def initials(self):
        """Return up to two upper-case initials of the display name."""
        return "".join(word[0] for word in self.full_name.split()[:2]).upper()

    @classmethod
    def sync(cls, user_id, full_name):
        """Create the profile for an identity, or refresh a changed name."""
        profile, created = cls.objects.get_or_create(
            user_id=user_id,
            defaults={"full_name": full_name},
        )
        if not created and profile.full_name != full_name:
            profile.full_name = full_name
            profile.save(update_fields=["full_name"])
        return profile


class UserRole(models.Model):
    """Role granted to a profile. Only the admin role is checked."""

    ROLE_CHOICES = [
        ("admin", "Admin"),
        ("moderator", "Moderator"),
        ("user", "User"),
    ]

    user = models.ForeignKey(
        Profile,
        to_field="user_id",
        db_column="user_id",
        on_delete=models.CASCADE,
        related_name="roles",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="unique_user_role"),
        ]

    def __str__(self):
        return f"{self.user} is {self.role}"

    @classmethod
    def has_role(cls, user_id, role):
        return cls.objects.filter(user_id=user_id, role=role).exists()
