from ride_dispatch.driver import Driver, DriverStatus


class TestDriver:
    def test_defaults(self):
        driver = Driver(driver_id="d1")

        assert driver.name == "Driver d1"
        assert driver.status == DriverStatus.OFFLINE
        assert not driver.is_available
        assert driver.average_rating == 0.0

    def test_explicit_name_kept(self):
        assert Driver(driver_id="d1", name="Asha").name == "Asha"

    def test_online_driver_is_available(self):
        assert Driver(driver_id="d1", status=DriverStatus.ONLINE).is_available
        assert not Driver(driver_id="d1", status=DriverStatus.BUSY).is_available

    def test_record_rating_keeps_rounded_average(self):
        driver = Driver(driver_id="d1")

        driver.record_rating(5)
        driver.record_rating(4)
        driver.record_rating(4)

        assert driver.total_ratings == 3
        assert driver.average_rating == 4.3
