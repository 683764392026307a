"""Seed database with sample data."""

import asyncio
import sys

sys.path.append(".")

from classroom.core.database import AsyncSessionLocal, init_db
from classroom.models import Course, Project, Student
from classroom.services.enrollment_service import EnrollmentLifecycleService


async def seed_data():
    """Seed database with sample data."""
    await init_db()

    async with AsyncSessionLocal() as db:
        # Create courses
        courses = [
            Course(course_code="SWP391", course_name="Software Development Project"),
            Course(course_code="PRN211", course_name="Basic Cross-Platform Application Programming"),
        ]

        for course in courses:
            db.add(course)

        await db.commit()

        # Create projects
        projects = [
            Project(project_code="SWP391-G1", project_name="Library Management", course_id=courses[0].id),
            Project(project_code="SWP391-G2", project_name="Clinic Booking", course_id=courses[0].id),
            Project(project_code="PRN211-G1", project_name="Inventory Tracker", course_id=courses[1].id),
        ]

        for project in projects:
            db.add(project)

        await db.commit()

        # Create students
        students = [
            Student(student_code="SE170001", first_name="An", last_name="Nguyen", email="an@example.edu"),
            Student(student_code="SE170002", first_name="Binh", last_name="Tran", email="binh@example.edu"),
            Student(student_code="SE170003", first_name="Chi", last_name="Le", email="chi@example.edu"),
            Student(student_code="SE170004", first_name="Dung", last_name="Pham", email="dung@example.edu"),
        ]

        for student in students:
            db.add(student)

        await db.commit()

        # Enroll and group through the lifecycle service so audit rows are written
        service = EnrollmentLifecycleService(db)
        enrollments = []
        for index, student in enumerate(students):
            enrollment = await service.enroll(student.id, courses[0].id)
            project = projects[index % 2]
            role = "leader" if index < 2 else "member"
            enrollment = await service.assign_to_project(
                enrollment.id, project.id, role, group_number=index % 2 + 1
            )
            enrollments.append(enrollment)

        print("✅ Sample data seeded successfully!")
        print(f"Created:")
        print(f"  - {len(courses)} courses")
        print(f"  - {len(projects)} projects")
        print(f"  - {len(students)} students")
        print(f"  - {len(enrollments)} enrollments")


if __name__ == "__main__":
    asyncio.run(seed_data())
