"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import F, Q


class ActiveQuerySet(models.QuerySet):
    """Queryset with the soft-delete predicate shared by every model."""

    def active(self):
        return self.filter(deleted_at__isnull=True)


class Event(models.Model):
    """Persistence model for circle events."""

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        LOCKED = "locked", "Locked"
        FINALIZED = "finalized", "Finalized"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    circle_id = models.UUIDField()
    owner_id = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.DRAFT
    )
    starts_at = models.DateTimeField(blank=True, null=True)
    ends_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(blank=True, null=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["circle_id", "-created_at"], name="event_circle_created_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status="draft", starts_at__isnull=True, ends_at__isnull=True)
                    | (
                        ~Q(status="draft")
                        & Q(starts_at__isnull=False, ends_at__isnull=False)
                        & Q(starts_at__lt=F("ends_at"))
                    )
                ),
                name="event_schedule_matches_status",
            ),
        ]

    def __str__(self) -> str:
        return self.title


class CandidateTime(models.Model):
    """Persistence model for proposed event times."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="candidates"
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(blank=True, null=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ["start_time", "created_at", "id"]
        indexes = [
            models.Index(
                fields=["event", "start_time"], name="candidate_event_start_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="candidate_start_before_end",
            ),
            models.UniqueConstraint(
                fields=["event", "start_time", "end_time"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_active_candidate_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event.title} - {self.start_time}"


class Vote(models.Model):
    """Persistence model for candidate time votes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="votes")
    candidate = models.ForeignKey(
        CandidateTime, on_delete=models.PROTECT, related_name="votes"
    )
    voter_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["candidate"], name="vote_candidate_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "voter_id"],
                name="uniq_vote_per_voter_per_event",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.voter_id} -> {self.candidate_id}"


class EventTransition(models.Model):
    """Audit trail of event status changes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="transitions"
    )
    from_status = models.CharField(max_length=16, choices=Event.Status.choices)
    to_status = models.CharField(max_length=16, choices=Event.Status.choices)
    actor_id = models.CharField(max_length=64, blank=True, null=True)
    candidate = models.ForeignKey(
        CandidateTime,
        on_delete=models.SET_NULL,
        related_name="+",
        blank=True,
        null=True,
    )
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["event", "created_at"], name="transition_event_created_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_id}: {self.from_status} -> {self.to_status}"
