"""
Shared test fixtures and sample CFG content for comtrade-cfg tests.

Sample files are kept as module-level strings so each test can see the
exact lines it parses. Fixtures write them to ``tmp_path`` when a test
needs a file on disk.
"""

from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Sample CFG content -- line indices are noted where tests depend on them
# ---------------------------------------------------------------------------

# Revision 2013, 1 analog + 1 status, one rate segment, empty time multiplier.
# 0 header, 1 counts, 2 analog, 3 status, 4 frequency, 5 nrates, 6 segment,
# 7 start, 8 event, 9 dat type, 10 multiplier, 11 time code, 12 tmq code
CFG_2013 = """\
SUBSTATION A,RELAY 7,2013
2,1A,1D
1,VA,A,BUS1,kV,0.1,0.5,0.0,-32767,32767,500.0,0.1,P
1,TRIP,,BKR1,0
60
1
4800.0,9600
04/03/2023,10:15:30.123456
04/03/2023,10:15:30.223456
BINARY

-4,-4
B,3
"""

# Revision 1991 (no revision token), 2 analog + 1 status.
# 0 header, 1 counts, 2-3 analog, 4 status, 5 frequency, 6 nrates,
# 7 segment, 8 start, 9 event, 10 dat type
CFG_1991 = """\
STATION,DEVICE
3,2A,1D
1,IA,A,,A,0.01,0,0,-2048,2047,1,1,S
2,IB,B,,A,0.01,0,0,-2048,2047,1,1,S
1,BRK,,,0
50
1
1000,2000
03/04/1999,08:00:00.000
03/04/1999,08:00:00.500
ASCII
"""

# Revision 1999 with a zero rate count and no segment line.
# 0 header, 1 counts, 2 analog, 3 frequency, 4 nrates, 5 start, 6 event,
# 7 dat type, 8 multiplier
CFG_1999_ZERO_RATES = """\
PLANT,DFR-2,1999
1,1A,0D
1,UA,A,,V,1.5,0,0,-100,100,1,1,P
50
0
01/02/2001,00:00:01.000000
01/02/2001,00:00:01.100000
FLOAT32
1000
"""


@pytest.fixture
def cfg_2013_path(tmp_path) -> Path:
    path = tmp_path / "record_2013.cfg"
    path.write_text(CFG_2013, encoding="utf-8")
    return path


@pytest.fixture
def cfg_1991_path(tmp_path) -> Path:
    path = tmp_path / "record_1991.cfg"
    path.write_text(CFG_1991, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (parses CFG files from disk)",
    )
