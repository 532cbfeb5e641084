"""Serializers for request input and domain-model responses."""

from rest_framework import serializers


class ProposeTimeSerializer(serializers.Serializer):
    """Input for proposing a candidate time."""

    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()


class CandidateChoiceSerializer(serializers.Serializer):
    """Input naming a candidate time (vote, lock)."""

    candidate_id = serializers.UUIDField()


class CandidateTimeSerializer(serializers.Serializer):
    """Serializer for CandidateTime domain model."""

    id = serializers.CharField(source="id.value")
    event_id = serializers.CharField(source="event_id.value")
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()


class EventSerializer(serializers.Serializer):
    """Serializer for DraftEvent and ScheduledEvent domain models."""

    id = serializers.CharField(source="id.value")
    circle_id = serializers.CharField(source="circle_id.value")
    title = serializers.CharField()
    status = serializers.CharField(source="status.value")
    starts_at = serializers.SerializerMethodField()
    ends_at = serializers.SerializerMethodField()

    def _datetime(self, value):
        return serializers.DateTimeField().to_representation(value)

    def get_starts_at(self, event):
        starts_at = getattr(event, "starts_at", None)
        return self._datetime(starts_at) if starts_at else None

    def get_ends_at(self, event):
        ends_at = getattr(event, "ends_at", None)
        return self._datetime(ends_at) if ends_at else None


class VoteSerializer(serializers.Serializer):
    """Serializer for Vote domain model."""

    id = serializers.CharField()
    event_id = serializers.CharField(source="event_id.value")
    candidate_id = serializers.CharField(source="candidate_id.value")
    voter_id = serializers.CharField()


class VoteReceiptSerializer(serializers.Serializer):
    vote = VoteSerializer()
    leader = CandidateTimeSerializer(allow_null=True)


class TallyEntrySerializer(serializers.Serializer):
    candidate = CandidateTimeSerializer()
    votes = serializers.IntegerField()
    rank = serializers.IntegerField()


class CandidateListingSerializer(serializers.Serializer):
    """Candidates in listing order with their votes and the ranking."""

    event = EventSerializer()
    candidates = serializers.SerializerMethodField()
    ranking = TallyEntrySerializer(source="tally.entries", many=True)
    leader = CandidateTimeSerializer(allow_null=True)

    def get_candidates(self, listing):
        return [
            {
                **CandidateTimeSerializer(candidate).data,
                "votes": listing.tally.votes_for(candidate.id),
            }
            for candidate in listing.candidates
        ]


class FinalizeResultSerializer(serializers.Serializer):
    event = EventSerializer()
    ranking = TallyEntrySerializer(source="tally.entries", many=True)
