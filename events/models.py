import uuid

from django.db import models

from planner.audience import normalize_audience

VENUE_UNSET = '未設定'


class Event(models.Model):
    """A school event (trip, ceremony, club day) shown to its audience."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    venue = models.CharField(max_length=255, blank=True, default="")
    duration = models.CharField(max_length=100, blank=True, default="")
    date_time = models.DateTimeField(db_index=True)
    description = models.TextField(blank=True, default="")
    items = models.TextField(blank=True, default="")  # Packing list / dress code
    is_important = models.BooleanField(default=False)

    # Audience: is_for_all wins over assigned_to; assigned_user_id is the legacy single assignee
    is_for_all = models.BooleanField(default=False)
    assigned_to = models.JSONField(default=list, blank=True)
    assigned_user_id = models.JSONField(null=True, blank=True)  # Old rows: an id or a list of {id, name}

    created_by = models.ForeignKey(
        'accounts.Student',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_events',
        db_column='created_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "events"
        ordering = ["date_time"]

    def __str__(self):
        return f"{self.title} ({self.date_time.strftime('%Y-%m-%d %H:%M')})"

    @property
    def audience(self):
        return normalize_audience(self)

    @property
    def venue_label(self):
        """Venue for display; blank (and the old stored placeholder) read as unset."""
        venue = (self.venue or '').strip()
        return venue or VENUE_UNSET

    @property
    def has_venue(self):
        return self.venue_label != VENUE_UNSET
