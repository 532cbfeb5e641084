from django.contrib import admin

from scheduling.models import CandidateTime, Event, EventTransition, Vote


class CandidateTimeInline(admin.TabularInline):
    model = CandidateTime
    extra = 0
    fields = ["start_time", "end_time", "deleted_at"]


class EventTransitionInline(admin.TabularInline):
    model = EventTransition
    extra = 0
    fields = ["from_status", "to_status", "actor_id", "candidate", "created_at"]
    readonly_fields = fields
    can_delete = False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "circle_id", "status", "starts_at", "created_at"]
    list_filter = ["status"]
    search_fields = ["title"]
    # Status and schedule change only through the scheduling coordinator.
    readonly_fields = ["status", "starts_at", "ends_at"]
    inlines = [CandidateTimeInline, EventTransitionInline]


@admin.register(CandidateTime)
class CandidateTimeAdmin(admin.ModelAdmin):
    list_display = ["event", "start_time", "end_time", "deleted_at"]
    list_filter = ["event__status"]


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ["event", "candidate", "voter_id", "created_at"]
    list_filter = ["event"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
