from datetime import date, datetime

import pytest

from logic.fechas import FechaInvalida, a_fecha, dias_entre, reconocer_fecha


def test_reconocer_fecha():
    assert reconocer_fecha("05.03.2025") == date(2025, 3, 5)
    assert reconocer_fecha("2025/3/5") == date(2025, 3, 5)
    assert reconocer_fecha("5 de marzo") is None
    assert reconocer_fecha("") is None


def test_a_fecha_acepta_date_datetime_e_iso():
    assert a_fecha(date(2025, 3, 5)) == date(2025, 3, 5)
    assert a_fecha(datetime(2025, 3, 5, 10, 30)) == date(2025, 3, 5)
    assert a_fecha("2025-03-05T10:30:00") == date(2025, 3, 5)
    assert a_fecha("05/03/2025") == date(2025, 3, 5)


def test_a_fecha_invalida():
    with pytest.raises(FechaInvalida):
        a_fecha("ayer")
    with pytest.raises(FechaInvalida):
        a_fecha(None)
    # FechaInvalida es un ValueError
    with pytest.raises(ValueError):
        a_fecha("31/02/2025")


def test_dias_entre_es_simetrico():
    assert dias_entre("05/03/2025", date(2025, 3, 3)) == 2
    assert dias_entre(date(2025, 3, 3), "05/03/2025") == 2
    assert dias_entre(date(2025, 3, 3), date(2025, 3, 3)) == 0
