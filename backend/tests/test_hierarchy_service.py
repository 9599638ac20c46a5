"""Manager hierarchy helpers: cycle detection, descendants, visibility, tree."""

from types import SimpleNamespace

from teamclock.services.hierarchy_service import (
    build_hierarchy_tree,
    can_manage_user,
    chain_of_command,
    filter_visible_users,
    get_descendant_ids,
    manager_lookup,
    would_create_cycle,
)


def member(id, role="EMPLOYEE", manager_id=None):
    return SimpleNamespace(id=id, role=role, manager_id=manager_id, to_dict=lambda: {"id": id})


# 1 (ADMIN) <- 2 (MANAGER) <- 3 (MANAGER) <- 4 (EMPLOYEE); 5 is unattached
USERS = [
    member(1, "ADMIN"),
    member(2, "MANAGER", 1),
    member(3, "MANAGER", 2),
    member(4, "EMPLOYEE", 3),
    member(5, "EMPLOYEE"),
]
LOOKUP = manager_lookup(USERS)


class TestWouldCreateCycle:

    def test_self_assignment_is_a_cycle(self):
        assert would_create_cycle(3, 3, LOOKUP) is True

    def test_assigning_a_descendant_as_manager_is_a_cycle(self):
        # 2 manages 3 manages 4: making 4 the manager of 2 closes the loop
        assert would_create_cycle(2, 4, LOOKUP) is True
        assert would_create_cycle(1, 3, LOOKUP) is True

    def test_sideways_assignment_is_allowed(self):
        assert would_create_cycle(5, 3, LOOKUP) is False
        assert would_create_cycle(4, 2, LOOKUP) is False

    def test_clearing_manager_is_never_a_cycle(self):
        assert would_create_cycle(2, None, LOOKUP) is False

    def test_terminates_on_existing_cycle(self):
        broken = {10: 11, 11: 12, 12: 10, 20: None}
        assert would_create_cycle(20, 10, broken) is False
        assert would_create_cycle(11, 10, broken) is True


class TestWalks:

    def test_chain_of_command(self):
        assert chain_of_command(4, LOOKUP) == [3, 2, 1]
        assert chain_of_command(1, LOOKUP) == []

    def test_descendants(self):
        assert sorted(get_descendant_ids(2, LOOKUP)) == [3, 4]
        assert get_descendant_ids(4, LOOKUP) == []

    def test_descendants_with_stored_cycle(self):
        broken = {1: 2, 2: 1}
        assert sorted(get_descendant_ids(1, broken)) == [2]


class TestPermissions:

    def test_admin_manages_everyone(self):
        assert can_manage_user(USERS[0], USERS[4], LOOKUP) is True

    def test_manager_manages_indirect_reports_only(self):
        assert can_manage_user(USERS[1], USERS[3], LOOKUP) is True
        assert can_manage_user(USERS[2], USERS[1], LOOKUP) is False
        assert can_manage_user(USERS[1], USERS[4], LOOKUP) is False
        assert can_manage_user(USERS[1], USERS[1], LOOKUP) is False

    def test_employee_manages_nobody(self):
        assert can_manage_user(USERS[3], USERS[4], LOOKUP) is False

    def test_visibility(self):
        assert [u.id for u in filter_visible_users(USERS, USERS[0])] == [1, 2, 3, 4, 5]
        assert [u.id for u in filter_visible_users(USERS, USERS[2])] == [3, 4]
        assert [u.id for u in filter_visible_users(USERS, USERS[4])] == [5]


class TestHierarchyTree:

    def test_forest(self):
        tree = build_hierarchy_tree(USERS)
        assert [node["user"]["id"] for node in tree] == [1, 5]
        chain = tree[0]
        assert chain["employees"][0]["user"]["id"] == 2
        assert chain["employees"][0]["employees"][0]["employees"][0]["user"]["id"] == 4

    def test_stored_cycle_still_listed_once(self):
        users = [member(1, "MANAGER", 2), member(2, "MANAGER", 1)]
        tree = build_hierarchy_tree(users)
        assert len(tree) == 1
        assert tree[0]["user"]["id"] == 1
        assert tree[0]["employees"][0]["user"]["id"] == 2
        assert tree[0]["employees"][0]["employees"] == []
