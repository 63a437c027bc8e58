from .coordinator import ONE_TIME_CODE_DIGITS, DispatchCoordinator, generate_one_time_code

__all__ = ["DispatchCoordinator", "ONE_TIME_CODE_DIGITS", "generate_one_time_code"]
