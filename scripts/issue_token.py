"""Issue a bearer token for local testing.

Usage: python scripts/issue_token.py ADMIN admin@example.edu [student_id]
"""

import sys

sys.path.append(".")

from classroom.core.security import Actor, Role, create_access_token


def main(argv: list[str]) -> int:
    if len(argv) < 3:
        print(__doc__)
        return 1

    role = Role(argv[1].upper())
    student_id = int(argv[3]) if len(argv) > 3 else None
    actor = Actor(user_id=argv[2], role=role, student_id=student_id)
    print(create_access_token(actor))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
