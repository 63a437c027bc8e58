import logging
from concurrent.futures import ThreadPoolExecutor

from ride_dispatch.dispatch_logging import (
    ContextFilter,
    current_fields,
    log_context,
    log_driver_context,
    log_ride_context,
)


def make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)


class TestLogContext:
    def test_fields_injected_inside_block(self):
        record = make_record()

        with log_ride_context("r1", driver_id="d1"):
            ContextFilter().filter(record)

        assert record.ride_id == "r1"
        assert record.driver_id == "d1"

    def test_driver_context(self):
        record = make_record()

        with log_driver_context("d7"):
            ContextFilter().filter(record)

        assert record.driver_id == "d7"
        assert not hasattr(record, "ride_id")

    def test_fields_removed_after_block(self):
        with log_context(ride_id="r1"):
            pass

        assert dict(current_fields()) == {}

    def test_nested_blocks_restore_outer_fields(self):
        with log_context(ride_id="outer"):
            with log_context(ride_id="inner", driver_id="d1"):
                assert dict(current_fields()) == {"ride_id": "inner", "driver_id": "d1"}
            assert dict(current_fields()) == {"ride_id": "outer"}

    def test_fields_restored_after_exception(self):
        try:
            with log_ride_context("r1"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert dict(current_fields()) == {}

    def test_existing_record_attributes_win(self):
        record = make_record()
        record.ride_id = "explicit"

        with log_context(ride_id="context"):
            ContextFilter().filter(record)

        assert record.ride_id == "explicit"

    def test_fields_do_not_leak_across_threads(self):
        with log_ride_context("r1"):
            with ThreadPoolExecutor(max_workers=1) as executor:
                seen = executor.submit(lambda: dict(current_fields())).result()

        assert seen == {}
