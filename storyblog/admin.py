"""
Django admin configuration for storyblog.
"""
from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html

from .models import Comment, Post, PostView, Profile, Reaction, UserRole


class CommentInline(admin.TabularInline):
    """Inline for reviewing comments on a post."""

    model = Comment
    extra = 0
    raw_id_fields = ["author"]
    fields = ["author_name", "author", "content", "created_at"]
    readonly_fields = ["created_at"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = [
        "title_preview",
        "author",
        "is_hidden",
        "image_preview",
        "view_total",
        "created_at",
    ]
    list_filter = ["is_hidden", "created_at"]
    search_fields = ["title", "content", "author__full_name"]
    raw_id_fields = ["author"]
    date_hierarchy = "created_at"
    inlines = [CommentInline]

    fieldsets = (
        (None, {
            "fields": ("title", "content", "image_url", "author")
        }),
        ("Status", {
            "fields": ("is_hidden", "created_at"),
        }),
    )

    actions = ["hide_posts", "unhide_posts"]

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(num_views=Count("views"))

    def title_preview(self, obj):
        """Truncated title for list display."""
        return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title

    title_preview.short_description = "Title"

    def image_preview(self, obj):
        if obj.image_url:
            return format_html(
                '<img src="{}" style="max-width: 50px; max-height: 50px;" />',
                obj.image_url,
            )
        return "-"

    image_preview.short_description = "Image"

    def view_total(self, obj):
        return obj.num_views

    view_total.short_description = "Views"
    view_total.admin_order_field = "num_views"

    @admin.action(description="Hide selected posts")
    def hide_posts(self, request, queryset):
        count = queryset.update(is_hidden=True)
        self.message_user(request, f"{count} posts hidden.")

    @admin.action(description="Unhide selected posts")
    def unhide_posts(self, request, queryset):
        count = queryset.update(is_hidden=False)
        self.message_user(request, f"{count} posts unhidden.")


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ["preview", "author_name", "author", "post", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["content", "author_name", "post__title"]
    raw_id_fields = ["post", "author"]
    readonly_fields = ["created_at"]


@admin.register(Reaction)
class ReactionAdmin(admin.ModelAdmin):
    list_display = ["visitor_id", "post", "reaction_type", "emoji", "created_at"]
    list_filter = ["reaction_type", "created_at"]
    search_fields = ["visitor_id", "post__title"]
    raw_id_fields = ["post"]


@admin.register(PostView)
class PostViewAdmin(admin.ModelAdmin):
    list_display = ["visitor_id", "post", "created_at"]
    search_fields = ["visitor_id", "post__title"]
    raw_id_fields = ["post"]
    readonly_fields = ["created_at"]


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["full_name", "user_id", "created_at"]
    search_fields = ["full_name", "user_id"]
    readonly_fields = ["created_at"]
    inlines = [UserRoleInline]


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ["user", "role", "created_at"]
    list_filter = ["role"]
    raw_id_fields = ["user"]
