"""
URL configuration for django-storyblog.

Include in your project urls.py:

    path('blog/', include('storyblog.urls')),
"""
from django.urls import path

from . import views

app_name = "storyblog"

urlpatterns = [
    # Post list and detail
    path("", views.PostListView.as_view(), name="post_list"),
    path("post/<int:pk>/", views.PostDetailView.as_view(), name="post_detail"),
    path("post/<int:pk>/views/", views.PostViewCountView.as_view(), name="post_views"),

    # Post CRUD
    path("post/new/", views.PostCreateView.as_view(), name="post_create"),
    path("post/<int:pk>/edit/", views.PostUpdateView.as_view(), name="post_update"),
    path("post/<int:pk>/delete/", views.PostDeleteView.as_view(), name="post_delete"),
    path("post/<int:pk>/hide/", views.PostHiddenToggleView.as_view(), name="post_toggle_hidden"),

    # Browsing
    path("archive/", views.ArchiveView.as_view(), name="archive"),
    path("authors/", views.AuthorListView.as_view(), name="author_list"),
    path("author/<str:user_id>/", views.AuthorDetailView.as_view(), name="author_detail"),

    # Interactions
    path("post/<int:pk>/comments/", views.CommentListCreateView.as_view(), name="comments"),
    path("comment/<int:pk>/delete/", views.CommentDeleteView.as_view(), name="comment_delete"),
    path("post/<int:pk>/react/", views.ReactionToggleView.as_view(), name="reaction_toggle"),
]
