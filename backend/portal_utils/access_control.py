from portal.errors import ForbiddenError

STAFF_ROLES = {"admin", "teacher"}


def can_access_student(account, student_id):
    """
    Whether ``account`` may read the records of ``student_id``.
    - Staff roles (admin, teacher) can read every student.
    - Students are restricted to their own id.
    """
    if not account:
        raise ValueError("No account provided")

    if account.role in STAFF_ROLES:
        return True

    try:
        return int(student_id) == account.id
    except (TypeError, ValueError):
        return False


def scoped_student_filter(account, requested_student_id=None):
    """
    The student_id a listing query should be limited to.
    Students always get their own id; staff get whatever they asked for (possibly None).
    Raises ForbiddenError when a student asks for someone else.
    """
    if account.role in STAFF_ROLES:
        return requested_student_id

    if requested_student_id not in (None, "") and str(requested_student_id) != str(account.id):
        raise ForbiddenError("Access denied to the requested student's records")

    return account.id
