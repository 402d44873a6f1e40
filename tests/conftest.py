import pytest

from dropwatch.models import Category
from dropwatch.stats import IngestStats
from dropwatch.store import EventStore

INTERNAL_TCP_LINE = (
    "Oct 19 01:29:00 gw kernel: INTERNAL_DROPPED: IN=eth0 OUT= "
    "MAC=00:11:22:33:44:55:66:77:88:99:aa:bb:08:00 SRC=10.0.0.7 DST=10.0.0.1 "
    "LEN=60 TOS=0x00 PREC=0x00 TTL=64 ID=54321 DF PROTO=TCP SPT=51234 DPT=22 "
    "WINDOW=29200 RES=0x00 SYN URGP=0"
)

EXTERNAL_ICMP_LINE = (
    "Oct 19 01:29:05 gw kernel: EXTERNAL_DROPPED: IN=wan0 OUT= "
    "MAC=00:11:22:33:44:55:66:77:88:99:aa:bb:08:00 SRC=203.0.113.9 DST=198.51.100.2 "
    "LEN=84 TOS=0x00 PREC=0x00 TTL=52 ID=0 DF PROTO=ICMP TYPE=8 CODE=0 ID=17 SEQ=1"
)

NOISE_LINE = "Oct 19 01:29:07 gw systemd[1]: Started Daily apt download activities."


@pytest.fixture
def store():
    return EventStore()


@pytest.fixture
def stores():
    return {category: EventStore() for category in Category}


@pytest.fixture
def stats():
    return IngestStats()


@pytest.fixture
def internal_line():
    return INTERNAL_TCP_LINE


@pytest.fixture
def external_line():
    return EXTERNAL_ICMP_LINE


@pytest.fixture
def noise_line():
    return NOISE_LINE
