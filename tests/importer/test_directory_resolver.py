from bloodlagbe.importer.pipeline import DirectoryKind, DirectoryResolver
from bloodlagbe.models import Campus, Group, db


def test_resolve_creates_entity_once_per_name():
    resolver = DirectoryResolver(db.session)

    first = resolver.resolve(DirectoryKind.CAMPUS, "Dhaka University")
    second = resolver.resolve(DirectoryKind.CAMPUS, "  dhaka university ")

    assert first == second
    assert Campus.query.count() == 1
    assert resolver.created[DirectoryKind.CAMPUS] == 1


def test_resolve_reuses_existing_entity_case_insensitively(sample_campus):
    resolver = DirectoryResolver(db.session)

    assert resolver.resolve(DirectoryKind.CAMPUS, "DHAKA UNIVERSITY") == sample_campus.id
    assert resolver.created[DirectoryKind.CAMPUS] == 0


def test_resolve_case_sensitive_mode_treats_spellings_as_distinct(sample_group):
    resolver = DirectoryResolver(db.session, case_insensitive=False)

    assert resolver.resolve(DirectoryKind.GROUP, "Rover Scouts") == sample_group.id
    other = resolver.resolve(DirectoryKind.GROUP, "Rover Scouts Two")

    assert other != sample_group.id
    assert Group.query.count() == 2


def test_resolve_blank_names_to_none():
    resolver = DirectoryResolver(db.session)

    assert resolver.resolve(DirectoryKind.CAMPUS, None) is None
    assert resolver.resolve(DirectoryKind.GROUP, "   ") is None
    assert Campus.query.count() == 0
    assert Group.query.count() == 0


def test_campus_and_group_caches_are_independent():
    resolver = DirectoryResolver(db.session)

    campus_id = resolver.resolve(DirectoryKind.CAMPUS, "Red Crescent")
    group_id = resolver.resolve(DirectoryKind.GROUP, "Red Crescent")

    assert db.session.get(Campus, campus_id).name == "Red Crescent"
    assert db.session.get(Group, group_id).name == "Red Crescent"
