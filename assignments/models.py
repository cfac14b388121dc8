import uuid

from django.db import models

from planner.audience import normalize_audience


class Task(models.Model):
    """An assignment shown to its audience."""

    GOOGLE_CLASSROOM = 'google_classroom'
    TEAMS = 'teams'
    MOODLE = 'moodle'
    PAPER = 'paper'
    OTHER = 'other'
    SUBMISSION_METHOD_CHOICES = [
        (GOOGLE_CLASSROOM, 'Google Classroom'),
        (TEAMS, 'Teams'),
        (MOODLE, 'Moodle'),
        (PAPER, '紙（対面）'),
        (OTHER, 'その他'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subject = models.CharField(max_length=100)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    deadline = models.DateTimeField(null=True, blank=True)  # Year 2099 also means "no deadline"
    submission_method = models.CharField(
        max_length=32,
        choices=SUBMISSION_METHOD_CHOICES,
        default=GOOGLE_CLASSROOM,
    )
    is_important = models.BooleanField(default=False)

    # Audience: is_for_all wins over assigned_to; assigned_user_id is the legacy single assignee
    is_for_all = models.BooleanField(default=False)
    assigned_to = models.JSONField(default=list, blank=True)
    assigned_user_id = models.CharField(max_length=64, null=True, blank=True)

    created_by = models.ForeignKey(
        'accounts.Student',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_tasks',
        db_column='created_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "tasks"
        ordering = ["deadline", "-created_at"]
        indexes = [
            models.Index(fields=["deadline"], name="tasks_deadline_idx"),
        ]

    def __str__(self):
        return f"{self.subject} - {self.title}"

    @property
    def audience(self):
        return normalize_audience(self)


class UserTaskStatus(models.Model):
    """Per-user completion flag for a task. At most one row per (user, task)."""

    user = models.ForeignKey(
        'accounts.Student',
        on_delete=models.CASCADE,
        related_name='task_statuses',
        db_column='user_id',
    )
    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='statuses',
        db_column='task_id',
    )
    is_completed = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_task_status"
        constraints = [
            models.UniqueConstraint(fields=["user", "task"], name="unique_user_task_status"),
        ]

    def __str__(self):
        state = "done" if self.is_completed else "open"
        return f"{self.user_id} / {self.task_id}: {state}"

    @classmethod
    def set_completion(cls, user, task, is_completed):
        """Upsert the status row; repeating the same call leaves one identical row."""
        status, _created = cls.objects.update_or_create(
            user=user,
            task=task,
            defaults={'is_completed': bool(is_completed)},
        )
        return status

    @classmethod
    def completed_task_ids(cls, user_id):
        """Ids (as strings) of the tasks the user has marked complete."""
        return {
            str(task_id)
            for task_id in cls.objects.filter(user_id=user_id, is_completed=True).values_list('task_id', flat=True)
        }
