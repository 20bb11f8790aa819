import pytest

from crewup.models.activity import ACTIVITY_CATALOG, ActivityType, parse_activity_type


def test_catalog_covers_every_activity():
    assert set(ACTIVITY_CATALOG) == set(ActivityType)
    for activity in ActivityType:
        assert activity.label
        assert activity.emoji
        assert activity.prompts


def test_anything_is_compatible_with_all():
    for activity in ActivityType:
        assert ActivityType.ANYTHING.is_compatible_with(activity)
        assert activity.is_compatible_with(ActivityType.ANYTHING)


def test_different_activities_are_not_compatible():
    assert not ActivityType.RUN.is_compatible_with(ActivityType.YOGA)
    assert ActivityType.RUN.is_compatible_with(ActivityType.RUN)


def test_parse_activity_type():
    assert parse_activity_type("run") is ActivityType.RUN
    assert parse_activity_type(ActivityType.GYM) is ActivityType.GYM
    with pytest.raises(ValueError):
        parse_activity_type("SKYDIVING")
