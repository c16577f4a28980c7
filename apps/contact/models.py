from django.db import models


class ContactSubmission(models.Model):
    """Message left through the public contact form."""

    name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=32, blank=True)
    subject = models.CharField(max_length=255)
    message = models.TextField()
    source = models.CharField(max_length=64, default="contact_form")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):  # pragma: no cover - human readable representation
        return f"{self.subject} from {self.email}"
