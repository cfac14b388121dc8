import uuid

from django.db import models

from planner.audience import Audience


class Exam(models.Model):
    """A test or quiz. Every user sees every test."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subject = models.CharField(max_length=100)
    test_date = models.DateTimeField(db_index=True)
    scope = models.TextField(blank=True, default="")  # Syllabus range
    # Lookup-only link: deleting the task just clears it, and no FK constraint is enforced
    related_task = models.ForeignKey(
        'assignments.Task',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='related_tests',
        db_column='related_task_id',
        db_constraint=False,
    )
    teacher = models.CharField(max_length=100, blank=True, default="")
    is_important = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        'accounts.Student',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_tests',
        db_column='created_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "tests"
        ordering = ["test_date"]

    def __str__(self):
        return f"{self.subject} ({self.test_date.strftime('%Y-%m-%d')})"

    @property
    def audience(self):
        return Audience.everyone()


class ExamNotification(models.Model):
    """Per-user reminder switch for a test. At most one row per (user, test)."""

    user = models.ForeignKey(
        'accounts.Student',
        on_delete=models.CASCADE,
        related_name='test_notifications',
        db_column='user_id',
    )
    test = models.ForeignKey(
        Exam,
        on_delete=models.CASCADE,
        related_name='notifications',
        db_column='test_id',
    )
    is_notification_enabled = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "test_notifications"
        constraints = [
            models.UniqueConstraint(fields=["user", "test"], name="unique_test_notification"),
        ]

    def __str__(self):
        state = "on" if self.is_notification_enabled else "off"
        return f"{self.user_id} / {self.test_id}: {state}"

    @classmethod
    def set_enabled(cls, user, test, enabled):
        """Upsert the reminder switch."""
        notification, _created = cls.objects.update_or_create(
            user=user,
            test=test,
            defaults={'is_notification_enabled': bool(enabled)},
        )
        return notification
