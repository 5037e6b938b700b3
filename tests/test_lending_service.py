"""Tests for the lending service.

The service runs with its clock pinned to 2024-06-01 (see conftest), when
every open demo loan is overdue:

    record 2  To Kill a Mockingbird  Bob      due 2024-05-04
    record 1  The Lord of the Rings  Alice    due 2024-05-15
    record 3  The Great Gatsby       Charlie  due 2024-05-24
    record 4  War and Peace          Alice    due 2024-05-26
"""

import threading
from datetime import date

import pytest

from school_library_mcp.models import BookCandidate, ErrorKind, StudentCandidate
from school_library_mcp.services import LendingService

TODAY = date(2024, 6, 1)


def assert_availability_matches_open_records(service: LendingService) -> None:
    """A book is available exactly when no open record references it."""
    on_loan = {r.book_id for r in service.list_borrow_records() if r.is_open}
    for book in service.list_books():
        assert book.is_available == (book.id not in on_loan), book


class TestQueries:
    def test_listings(self, seeded_service: LendingService):
        assert len(seeded_service.list_books()) == 8
        assert [s.name for s in seeded_service.list_students()] == [
            "Alice",
            "Bob",
            "Charlie",
            "Diana",
        ]
        assert len(seeded_service.list_borrow_records()) == 7

    def test_get_book_and_student(self, seeded_service: LendingService):
        assert seeded_service.get_book(4).title == "To Kill a Mockingbird"
        assert seeded_service.get_book(99) is None
        assert seeded_service.get_student(3).name == "Charlie"
        assert seeded_service.get_student(99) is None

    def test_overdue_records_sorted_by_due_date(self, seeded_service: LendingService):
        overdue = seeded_service.get_overdue_records()

        assert [o.record_id for o in overdue] == [2, 1, 3, 4]
        first = overdue[0]
        assert first.book_title == "To Kill a Mockingbird"
        assert first.student_name == "Bob"
        assert first.due_date == date(2024, 5, 4)

    def test_overdue_is_relative_to_today(self, seeded_db_manager):
        service = LendingService(seeded_db_manager, today=lambda: date(2024, 5, 10))
        assert [o.record_id for o in service.get_overdue_records()] == [2]
        assert service.get_dashboard_stats().overdue_count == 1

    def test_dashboard_stats(self, seeded_service: LendingService):
        stats = seeded_service.get_dashboard_stats()

        assert stats.total_books == 8
        assert stats.total_students == 4
        assert stats.borrowed_count == 4
        assert stats.overdue_count == 4
        assert [(e.name, e.count) for e in stats.top_students] == [
            ("Alice", 3),
            ("Bob", 2),
            ("Charlie", 1),
        ]
        # Three books tie on two borrows each; ties keep first-borrowed order
        assert [(e.title, e.count) for e in stats.top_books] == [
            ("The Lord of the Rings", 2),
            ("To Kill a Mockingbird", 2),
            ("The Great Gatsby", 2),
        ]

    def test_dashboard_on_empty_store(self, service: LendingService):
        stats = service.get_dashboard_stats()
        assert stats.total_books == 0
        assert stats.borrowed_count == 0
        assert stats.top_students == []
        assert stats.top_books == []

    def test_student_loans(self, seeded_service: LendingService):
        student, loans = seeded_service.get_student_loans(1)

        assert student.name == "Alice"
        assert [loan.book_title for loan in loans] == ["The Lord of the Rings", "War and Peace"]
        assert all(loan.is_overdue for loan in loans)
        assert loans[0].days_overdue == 17

    def test_student_loans_unknown_student(self, seeded_service: LendingService):
        assert seeded_service.get_student_loans(99) is None
        assert seeded_service.get_student_loans(4)[1] == []

    def test_get_borrow_record(self, seeded_service: LendingService):
        record = seeded_service.get_borrow_record(5)

        assert (record.book_id, record.student_id) == (1, 2)
        assert record.return_date == date(2024, 4, 28)
        assert seeded_service.get_borrow_record(99) is None

    def test_seeded_data_is_consistent(self, seeded_service: LendingService):
        assert_availability_matches_open_records(seeded_service)


class TestBorrowBook:
    def test_borrow_available_book(self, seeded_service: LendingService):
        result = seeded_service.borrow_book(2, 1, date(2024, 6, 1), date(2024, 6, 15))

        assert result.success, result.message
        assert result.message == "Borrowed 'Pride and Prejudice'. Due back on 2024-06-15"
        record = result.data
        assert record.id == 8
        assert (record.book_id, record.student_id) == (2, 1)
        assert record.return_date is None

        assert seeded_service.get_book(2).is_available is False
        assert seeded_service.get_dashboard_stats().borrowed_count == 5
        assert_availability_matches_open_records(seeded_service)

    def test_borrow_book_on_loan(self, seeded_service: LendingService):
        before = seeded_service.list_borrow_records()

        result = seeded_service.borrow_book(4, 3, date(2024, 6, 1), date(2024, 6, 15))

        assert not result.success
        assert result.error == ErrorKind.UNAVAILABLE
        assert "To Kill a Mockingbird" in result.message
        assert seeded_service.list_borrow_records() == before

    def test_borrow_missing_book(self, seeded_service: LendingService):
        result = seeded_service.borrow_book(99, 1, date(2024, 6, 1), date(2024, 6, 15))
        assert result.error == ErrorKind.NOT_FOUND
        assert result.message == "Book 99 does not exist"

    def test_borrow_for_missing_student(self, seeded_service: LendingService):
        result = seeded_service.borrow_book(2, 99, date(2024, 6, 1), date(2024, 6, 15))

        assert result.error == ErrorKind.NOT_FOUND
        assert seeded_service.get_book(2).is_available is True

    @pytest.mark.parametrize(
        "borrow_date, due_date",
        [
            (date(2024, 6, 15), date(2024, 6, 1)),
            (date(2024, 6, 1), date(2024, 6, 1)),
            (date(2024, 6, 1), date(2026, 6, 2)),
        ],
    )
    def test_invalid_dates(self, seeded_service: LendingService, borrow_date, due_date):
        result = seeded_service.borrow_book(2, 1, borrow_date, due_date)

        assert result.error == ErrorKind.VALIDATION_FAILURE
        assert seeded_service.get_book(2).is_available is True

    def test_longest_allowed_loan(self, seeded_service: LendingService):
        result = seeded_service.borrow_book(2, 4, date(2024, 6, 1), date(2026, 6, 1))
        assert result.success, result.message

    def test_overdue_limit_blocks_borrowing(self, service: LendingService):
        service.add_student("Eve")
        for i in range(6):
            service.add_book(f"Book {i}", "Author")

        # Five loans due before TODAY
        for book_id in range(1, 6):
            result = service.borrow_book(book_id, 1, date(2024, 5, 1), date(2024, 5, 15))
            assert result.success, result.message

        result = service.borrow_book(6, 1, date(2024, 6, 1), date(2024, 6, 15))

        assert result.error == ErrorKind.LIMIT_EXCEEDED
        assert "Eve" in result.message
        assert service.get_book(6).is_available is True

    def test_overdue_limit_is_configurable(self, seeded_db_manager):
        service = LendingService(seeded_db_manager, today=lambda: TODAY, max_overdue_loans=2)
        # Alice has two overdue books, Diana none
        assert service.borrow_book(2, 1, TODAY, date(2024, 6, 15)).error == (
            ErrorKind.LIMIT_EXCEEDED
        )
        assert service.borrow_book(2, 4, TODAY, date(2024, 6, 15)).success


class TestReturnBook:
    def test_return_overdue_book(self, seeded_service: LendingService):
        result = seeded_service.return_book(4, 2)

        assert result.success, result.message
        assert result.message == "Returned 'To Kill a Mockingbird' on 2024-06-01"
        assert result.data.id == 2
        assert result.data.return_date == TODAY
        assert seeded_service.get_book(4).is_available is True
        assert [o.record_id for o in seeded_service.get_overdue_records()] == [1, 3, 4]
        assert_availability_matches_open_records(seeded_service)

    def test_borrow_then_return_twice(self, seeded_service: LendingService):
        assert seeded_service.borrow_book(2, 4, TODAY, date(2024, 6, 15)).success
        assert seeded_service.return_book(2, 4).success

        second = seeded_service.return_book(2, 4)

        assert second.error == ErrorKind.NOT_FOUND
        assert seeded_service.get_book(2).is_available is True

    def test_return_by_wrong_student(self, seeded_service: LendingService):
        result = seeded_service.return_book(4, 1)

        assert result.error == ErrorKind.NOT_FOUND
        assert seeded_service.get_book(4).is_available is False

    def test_return_for_missing_student(self, seeded_service: LendingService):
        assert seeded_service.return_book(4, 99).error == ErrorKind.NOT_FOUND


class TestCatalog:
    def test_add_book(self, service: LendingService):
        result = service.add_book("Matilda", "Roald Dahl", "https://picsum.photos/1")

        assert result.success
        assert result.message == "Added 'Matilda' by Roald Dahl (id 1)"
        assert result.data.is_available is True
        assert service.list_books()[0].cover_image == "https://picsum.photos/1"

    def test_add_book_rejects_blank_title(self, service: LendingService):
        result = service.add_book("   ", "Roald Dahl")

        assert result.error == ErrorKind.VALIDATION_FAILURE
        assert service.list_books() == []

    def test_new_books_listed_first(self, seeded_service: LendingService):
        seeded_service.add_book("Matilda", "Roald Dahl")
        books = seeded_service.list_books()
        assert books[0].title == "Matilda"
        assert books[0].id == 9

    def test_add_multiple_books_last_entry_first(self, service: LendingService):
        result = service.add_multiple_books(
            [
                {"title": "A", "author": "X"},
                {"title": "B", "author": "Y", "coverImage": "https://picsum.photos/2"},
            ]
        )

        assert result.success
        assert result.message == "Added 2 books"
        assert [b.title for b in service.list_books()] == ["B", "A"]
        assert [b.id for b in result.data] == [1, 2]

    def test_add_multiple_books_is_all_or_nothing(self, service: LendingService):
        result = service.add_multiple_books(
            [{"title": "A", "author": "X"}, {"title": "B"}]
        )

        assert result.error == ErrorKind.VALIDATION_FAILURE
        assert result.message.startswith("Entry 2: author")
        assert service.list_books() == []

    def test_add_multiple_books_empty(self, service: LendingService):
        assert service.add_multiple_books([]).error == ErrorKind.VALIDATION_FAILURE

    def test_delete_book(self, seeded_service: LendingService):
        result = seeded_service.delete_book(2)

        assert result.success
        assert result.message == "Deleted 'Pride and Prejudice'"
        assert seeded_service.get_book(2) is None

    def test_delete_book_on_loan(self, seeded_service: LendingService):
        result = seeded_service.delete_book(4)

        assert result.error == ErrorKind.CONFLICT
        assert seeded_service.get_book(4) is not None

    def test_delete_missing_book(self, seeded_service: LendingService):
        assert seeded_service.delete_book(99).error == ErrorKind.NOT_FOUND

    def test_deleted_book_ids_not_reused(self, seeded_service: LendingService):
        seeded_service.delete_book(7)
        assert seeded_service.add_book("Matilda", "Roald Dahl").data.id == 9

    def test_deleted_book_left_out_of_top_books(self, seeded_service: LendingService):
        # Record 5 closed the Lord of the Rings loan; returning record 1 frees the book
        assert seeded_service.return_book(1, 1).success
        assert seeded_service.delete_book(1).success

        titles = [e.title for e in seeded_service.get_dashboard_stats().top_books]
        assert "The Lord of the Rings" not in titles
        assert seeded_service.get_dashboard_stats().total_books == 7


class TestImport:
    async def test_import_books(self, service: LendingService, stub_importer_factory):
        importer = stub_importer_factory(
            books=[
                BookCandidate(title="Dune", author="Frank Herbert"),
                BookCandidate(
                    title="Emma", author="Jane Austen", cover_image="https://picsum.photos/3"
                ),
            ]
        )

        result = await service.import_books(
            "Dune\tFrank Herbert\nEmma\tJane Austen",
            importer,
            default_cover=lambda title: f"https://covers.test/{title}",
        )

        assert result.success
        assert importer.calls == ["Dune\tFrank Herbert\nEmma\tJane Austen"]
        books = service.list_books()
        assert [b.title for b in books] == ["Emma", "Dune"]
        assert books[0].cover_image == "https://picsum.photos/3"
        assert books[1].cover_image == "https://covers.test/Dune"

    async def test_import_books_parse_failure(self, service: LendingService, stub_importer_factory):
        importer = stub_importer_factory(error="No books found in the import text")

        result = await service.import_books("???", importer)

        assert result.error == ErrorKind.PARSE_FAILURE
        assert result.message == "No books found in the import text"
        assert service.list_books() == []

    async def test_import_students(self, service: LendingService, stub_importer_factory):
        importer = stub_importer_factory(
            students=[StudentCandidate(name="Eve"), StudentCandidate(name="Frank")]
        )

        result = await service.import_students("Eve\nFrank", importer)

        assert result.success
        assert result.message == "Added 2 students"
        assert [s.name for s in service.list_students()] == ["Frank", "Eve"]


class TestRoster:
    def test_add_student(self, seeded_service: LendingService):
        result = seeded_service.add_student("  Eve ")

        assert result.success
        assert result.message == "Added student Eve (id 5)"
        assert seeded_service.list_students()[0].name == "Eve"

    def test_add_student_blank_name(self, service: LendingService):
        assert service.add_student("").error == ErrorKind.VALIDATION_FAILURE

    def test_add_multiple_students(self, service: LendingService):
        result = service.add_multiple_students([{"name": "Eve"}, {"name": "Frank"}])
        assert [s.id for s in result.data] == [1, 2]

    def test_delete_student_with_loans(self, seeded_service: LendingService):
        result = seeded_service.delete_student(1)

        assert result.error == ErrorKind.CONFLICT
        assert seeded_service.get_student(1) is not None

    def test_delete_student(self, seeded_service: LendingService):
        result = seeded_service.delete_student(4)

        assert result.success
        assert result.message == "Deleted student Diana"

    def test_deleted_student_left_out_of_top_students(self, seeded_service: LendingService):
        # Bob returns his overdue book, then leaves
        assert seeded_service.return_book(4, 2).success
        assert seeded_service.delete_student(2).success

        names = [e.name for e in seeded_service.get_dashboard_stats().top_students]
        assert "Bob" not in names


class TestConcurrency:
    def test_concurrent_borrows_of_one_book(self, seeded_service: LendingService):
        workers = 8
        barrier = threading.Barrier(workers)
        results = []

        def borrow(student_id: int) -> None:
            barrier.wait()
            results.append(seeded_service.borrow_book(2, student_id, TODAY, date(2024, 6, 15)))

        threads = [threading.Thread(target=borrow, args=(n % 4 + 1,)) for n in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == workers
        assert sum(1 for r in results if r.success) == 1
        assert all(r.error == ErrorKind.UNAVAILABLE for r in results if not r.success)
        open_records = [
            r for r in seeded_service.list_borrow_records() if r.book_id == 2 and r.is_open
        ]
        assert len(open_records) == 1
        assert_availability_matches_open_records(seeded_service)

    def test_commands_alongside_concurrent_reads(self, seeded_service: LendingService):
        cycles = 50
        stop = threading.Event()
        reader_errors = []

        def read_catalog() -> None:
            while not stop.is_set():
                try:
                    seeded_service.list_books()
                    seeded_service.get_dashboard_stats()
                except Exception as e:
                    reader_errors.append(e)

        readers = [threading.Thread(target=read_catalog) for _ in range(2)]
        for reader in readers:
            reader.start()
        try:
            for _ in range(cycles):
                borrowed = seeded_service.borrow_book(2, 4, TODAY, date(2024, 6, 15))
                assert borrowed.success, borrowed.message
                returned = seeded_service.return_book(2, 4)
                assert returned.success, returned.message
        finally:
            stop.set()
            for reader in readers:
                reader.join()

        assert reader_errors == []
        assert len(seeded_service.list_borrow_records()) == 7 + cycles
        assert seeded_service.get_book(2).is_available is True
