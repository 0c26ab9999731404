from datetime import datetime, timezone

from rollcall.attendance.model import EmployeeRollcall
from rollcall.core.constants import MS_PER_HOUR, MS_PER_MINUTE
from rollcall.core.enums import LoginStatus
from rollcall.employees.model import Employee
from rollcall.payroll.calculator.standard_calculator import StandardPayrollCalculator, shift_minutes


def _ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def _employee(start_time=9 * 60, end_time=17 * 60, allowed_break_time=60, rate_per_day=800) -> Employee:
    return Employee(
        employee_id=1,
        name="A",
        register_id=1,
        start_time=start_time,
        end_time=end_time,
        allowed_break_time=allowed_break_time,
        rate_per_day=rate_per_day,
        is_manager=False,
        user_id=None,
        pin_hash=None,
        login_status=LoginStatus.NONE,
        is_active=True,
        created_by=1,
        created_at=0,
        updated_at=0,
    )


def _rollcall(present_time, absent_time=None, half_day=False) -> EmployeeRollcall:
    return EmployeeRollcall(
        rollcall_id=1,
        register_log_id=1,
        employee_id=1,
        present_time=present_time,
        absent_time=absent_time,
        half_day=half_day,
        created_by=1,
        created_at=present_time or 0,
        updated_at=0,
    )


def test_worked_time_runs_to_shift_end():
    calc = StandardPayrollCalculator()
    assert calc.worked_ms(_rollcall(_ms(2025, 1, 1, 9, 0)), _employee(), 0) == 8 * MS_PER_HOUR


def test_worked_time_stops_at_absence():
    calc = StandardPayrollCalculator()
    rollcall = _rollcall(_ms(2025, 1, 1, 9, 0), absent_time=_ms(2025, 1, 1, 12, 30))
    assert calc.worked_ms(rollcall, _employee(), 0) == 210 * MS_PER_MINUTE


def test_worked_time_never_negative():
    calc = StandardPayrollCalculator()
    assert calc.worked_ms(_rollcall(_ms(2025, 1, 1, 18, 0)), _employee(), 0) == 0
    assert calc.worked_ms(_rollcall(None, absent_time=_ms(2025, 1, 1, 9, 0)), _employee(), 0) == 0


def test_shift_end_uses_client_timezone():
    calc = StandardPayrollCalculator()
    # 09:00 in UTC-5 is 14:00 UTC; the shift ends at 17:00 local
    rollcall = _rollcall(_ms(2025, 1, 1, 14, 0))
    assert calc.worked_ms(rollcall, _employee(), 300) == 8 * MS_PER_HOUR


def test_overnight_shift_ends_next_day():
    calc = StandardPayrollCalculator()
    night = _employee(start_time=22 * 60, end_time=6 * 60)
    assert shift_minutes(night) == 8 * 60
    assert calc.worked_ms(_rollcall(_ms(2025, 1, 1, 22, 0)), night, 0) == 8 * MS_PER_HOUR


def test_day_wage_halves_for_half_day():
    calc = StandardPayrollCalculator()
    assert calc.day_wage(_rollcall(_ms(2025, 1, 1, 9, 0)), _employee()) == 800
    assert calc.day_wage(_rollcall(_ms(2025, 1, 1, 9, 0), half_day=True), _employee()) == 400
    assert calc.day_wage(_rollcall(None, absent_time=1), _employee()) == 0


def test_intensity_is_clamped_share_of_expected_hours():
    calc = StandardPayrollCalculator()
    emp = _employee()
    full = _rollcall(_ms(2025, 1, 1, 9, 0))
    half = _rollcall(_ms(2025, 1, 1, 9, 0), absent_time=_ms(2025, 1, 1, 12, 30))

    assert calc.intensity(full, emp, 0) == 1.0
    assert calc.intensity(half, emp, 0) == 0.5
    assert calc.intensity(_rollcall(None, absent_time=1), emp, 0) == 0.0


def test_intensity_with_break_longer_than_shift():
    calc = StandardPayrollCalculator()
    emp = _employee(allowed_break_time=10 * 60)
    assert calc.intensity(_rollcall(_ms(2025, 1, 1, 9, 0)), emp, 0) == 1.0
