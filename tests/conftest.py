import json

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from climviz.models import Co2Record, DisasterRecord, EmissionRecord  # noqa: E402
from climviz.store import DataStore  # noqa: E402

EMISSIONS_CSV = """Country,Industry,Year,Emissions
Germany,Energy,1990,100.0
Germany,Energy,1991,90.5
Germany,Agriculture,1990,20.0
Germany,Agriculture,1991,
France,Energy,1991,40.0
France,Energy,1990,45.0
France,Transport,1990,30.0
"""

DISASTERS = [
    {"geo": "Global", "type": "Wildfire", "year": 1995, "count": 2},
    {"geo": "Global", "type": "Storm", "year": 1995, "count": 1},
    {"geo": "Global", "type": "Wildfire", "year": 1996, "count": 1},
    {"geo": "Global", "type": "Storm", "year": 1996, "count": 3},
    {"geo": "Global", "type": "Flood", "year": 1997, "count": 3},
    {"geo": "Global", "type": "Flood", "year": 1990, "count": 9},
    {"geo": "Asia", "type": "Flood", "year": 1995, "count": 4},
    {"geo": "Asia", "type": "Storm", "year": 1998, "count": 1},
    {"geo": "Africa", "type": "Drought", "year": 2000, "count": 2},
]

CO2 = [
    {"geo": "Global", "year": 1995, "emissions_mt": 200.0},
    {"geo": "Global", "year": 1996, "emissions_mt": 220.0},
    {"geo": "Global", "year": 1997, "emissions_mt": 0.0},
    {"geo": "Asia", "year": 1995, "emissions_mt": 80.0},
]


@pytest.fixture
def emissions_csv(tmp_path):
    path = tmp_path / "ghg_emissions.csv"
    path.write_text(EMISSIONS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def disaster_files(tmp_path):
    d = tmp_path / "disasters_prepped.json"
    c = tmp_path / "co2_prepped.json"
    d.write_text(json.dumps(DISASTERS), encoding="utf-8")
    c.write_text(json.dumps(CO2), encoding="utf-8")
    return d, c


@pytest.fixture
def emissions_store():
    rows = [line.split(",") for line in EMISSIONS_CSV.strip().splitlines()[1:]]
    records = [
        EmissionRecord(c, i, int(y), float(v) if v else float("nan"))
        for c, i, y, v in rows
    ]
    return DataStore.from_emissions(records)


@pytest.fixture
def disaster_store():
    records = [DisasterRecord(**d) for d in DISASTERS]
    co2 = [Co2Record(**c) for c in CO2]
    return DataStore.from_disasters(records, co2)
