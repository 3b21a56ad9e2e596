"""Caller identity and group membership."""


class Caller(object):

    """The user on whose behalf a request runs; anonymous by default."""

    def __init__(self, user=None, groups=()):
        self.user = user or ''
        self.groups = list(groups or ())

    def __repr__(self):
        return 'Caller(user=%r, groups=%r)' % (self.user, self.groups)

    @property
    def anonymous(self):
        return not self.user


def is_member(memberlist, user, groups, case_sensitive=True):

    """
    Check whether a user, or one of its groups, appears in `memberlist`.

    The list is comma-separated; entries starting with ``@`` name groups and
    the rest name users, e.g. ``'admin, @editors'``.

        >>> is_member('admin, @editors', 'bob', ['editors'])
        True
        >>> is_member('admin, @editors', 'bob', ['users'])
        False
    """

    if not user and not groups:
        return False

    fold = (lambda s: s) if case_sensitive else (lambda s: s.casefold())
    user = fold(user.strip()) if user else ''
    groups = set(fold(group.strip()) for group in groups or ())

    for member in memberlist.split(','):
        member = fold(member.strip())
        if not member:
            continue
        if member.startswith('@'):
            if member[1:] in groups:
                return True
        elif user and member == user:
            return True
    return False
