"""
Demo data for the School Library MCP Server.

A small, fixed data set: eight books, four students and seven borrow
records, four of them still open. Record 2 (To Kill a Mockingbird, due
2024-05-04) is the classic overdue example; on any date after 2024-05-26
every open record is overdue.
"""

from datetime import date

from sqlalchemy.orm import Session

from .schema import Book, BorrowRecord, Student

DEMO_BOOKS = [
    (1, "The Lord of the Rings", "J.R.R. Tolkien", "https://picsum.photos/id/10/300/400", False),
    (2, "Pride and Prejudice", "Jane Austen", "https://picsum.photos/id/20/300/400", True),
    (
        3,
        "The Hitchhiker's Guide to the Galaxy",
        "Douglas Adams",
        "https://picsum.photos/id/30/300/400",
        True,
    ),
    (4, "To Kill a Mockingbird", "Harper Lee", "https://picsum.photos/id/40/300/400", False),
    (5, "1984", "George Orwell", "https://picsum.photos/id/50/300/400", True),
    (6, "The Great Gatsby", "F. Scott Fitzgerald", "https://picsum.photos/id/60/300/400", False),
    (7, "Moby Dick", "Herman Melville", "https://picsum.photos/id/70/300/400", True),
    (8, "War and Peace", "Leo Tolstoy", "https://picsum.photos/id/80/300/400", False),
]

DEMO_STUDENTS = [
    (1, "Alice"),
    (2, "Bob"),
    (3, "Charlie"),
    (4, "Diana"),
]

# (id, student_id, book_id, borrow_date, due_date, return_date)
DEMO_RECORDS = [
    (1, 1, 1, date(2024, 5, 1), date(2024, 5, 15), None),
    (2, 2, 4, date(2024, 4, 20), date(2024, 5, 4), None),
    (3, 3, 6, date(2024, 5, 10), date(2024, 5, 24), None),
    (4, 1, 8, date(2024, 5, 12), date(2024, 5, 26), None),
    (5, 2, 1, date(2024, 4, 15), date(2024, 4, 29), date(2024, 4, 28)),
    (6, 4, 4, date(2024, 3, 1), date(2024, 3, 15), date(2024, 3, 14)),
    (7, 1, 6, date(2024, 4, 1), date(2024, 4, 15), date(2024, 4, 14)),
]


def load_demo_data(session: Session) -> None:
    """Insert the demo collections. Listing order follows the lists above."""
    for position, (book_id, title, author, cover, available) in enumerate(DEMO_BOOKS, start=1):
        session.add(
            Book(
                id=book_id,
                title=title,
                author=author,
                cover_image=cover,
                is_available=available,
                position=position,
            )
        )

    for position, (student_id, name) in enumerate(DEMO_STUDENTS, start=1):
        session.add(Student(id=student_id, name=name, position=position))

    for record_id, student_id, book_id, borrowed, due, returned in DEMO_RECORDS:
        session.add(
            BorrowRecord(
                id=record_id,
                book_id=book_id,
                student_id=student_id,
                borrow_date=borrowed,
                due_date=due,
                return_date=returned,
            )
        )
