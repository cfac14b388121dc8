from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Student(models.Model):
    """
    Application user, keyed by the identity provider's user id.

    student_id is the attendance number; the unique index is the final
    arbiter of uniqueness, accounts.identity checks it before writing.
    """

    id = models.CharField(max_length=64, primary_key=True)  # Issued by the identity provider
    email = models.EmailField(max_length=255, blank=True, default="")
    name = models.CharField(max_length=255, blank=True, default="")
    student_id = models.CharField(max_length=32, unique=True)
    notification_days = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(30)],
        help_text="Days before a deadline to start notifying (1-30)",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        ordering = ["student_id"]

    def __str__(self):
        return f"{self.student_id} {self.name or self.email}".strip()

    @property
    def display_name(self):
        return self.name or self.email
