"""
Forms for django-storyblog.

Validation runs before any upload or database write.
"""
from django import forms
from django.template.defaultfilters import filesizeformat

from .conf import blog_settings
from .models import Comment, Post


class BoundedImageField(forms.ImageField):
    """Image field that rejects oversized files before decoding them."""

    default_error_messages = {
        "file_too_large": "File too large (%(size)s max).",
    }

    def to_python(self, data):
        size = getattr(data, "size", None)
        max_size = blog_settings.MAX_IMAGE_SIZE
        if size is not None and size > max_size:
            raise forms.ValidationError(
                self.error_messages["file_too_large"],
                code="file_too_large",
                params={"size": filesizeformat(max_size)},
            )
        return super().to_python(data)


class PostForm(forms.ModelForm):
    """Create or edit a post. The image is uploaded by the view."""

    image = BoundedImageField(required=False)

    class Meta:
        model = Post
        fields = ["title", "content"]

    @property
    def image_too_large(self):
        return self.has_error("image", "file_too_large")

    @property
    def missing_fields(self):
        return self.has_error("title", "required") or self.has_error("content", "required")


class CommentForm(forms.ModelForm):

    class Meta:
        model = Comment
        fields = ["author_name", "content"]

    @property
    def missing_fields(self):
        return self.has_error("author_name", "required") or self.has_error("content", "required")
