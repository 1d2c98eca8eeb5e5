from conftest import BODY_OUTPUT, FakeCalculator


def test_root_and_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["docs"] == "/docs"


def test_positions(client):
    r = client.post("/api/v1/charts/positions", json={
        "datetime": "1985-04-12T23:20:50Z", "latitude": 40.7128, "longitude": -74.006,
    })
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["planets"]["Sun"]["sign"] == "Leo"
    assert data["houses"]["1"]["sign"] == "Cancer"
    assert data["chart_points"]["Descendant"]["sign"] == "Capricorn"
    assert data["additional_points"]["Part of Fortune"]["sign"] == "Scorpio"
    assert data["datetime"] == "1985-04-12T23:20:50Z"


def test_positions_rejects_out_of_range_coordinates(client):
    r = client.post("/api/v1/charts/positions", json={
        "datetime": "1985-04-12T23:20:50Z", "latitude": 91, "longitude": 0,
    })
    assert r.status_code == 422
    assert r.json()["error"] == "ValidationError"
    assert client.calculator.calls == []


def test_assembler_coordinate_check_maps_to_422(client, monkeypatch):
    import scenarios

    real = scenarios.calculate_planetary_positions
    monkeypatch.setattr(scenarios, "calculate_planetary_positions",
                        lambda dt, lat, lon, calculator=None: real(dt, lat + 100, lon, calculator=calculator))
    r = client.post("/api/v1/charts/positions", json={
        "datetime": "1985-04-12T23:20:50Z", "latitude": 10, "longitude": 0,
    })
    assert r.status_code == 422
    assert r.json()["error"] == "InvalidCoordinatesError"
    assert client.calculator.calls == []


def test_positions_rejects_blank_datetime(client):
    r = client.post("/api/v1/charts/positions", json={"datetime": "  ", "latitude": 0, "longitude": 0})
    assert r.status_code == 422


def test_unparseable_datetime(client):
    r = client.post("/api/v1/charts/positions", json={"datetime": "next tuesday", "latitude": 0, "longitude": 0})
    assert r.status_code == 422
    assert r.json()["error"] == "InvalidTimestampError"


def test_datetime_out_of_range_after_offset(client):
    r = client.post("/api/v1/charts/positions", json={
        "datetime": "9999-12-31T23:00:00-05:00", "latitude": 0, "longitude": 0,
    })
    assert r.status_code == 422
    assert r.json()["error"] == "InvalidTimestampError"
    assert client.calculator.calls == []


def test_calculator_failure_is_bad_gateway(client):
    client.calculator.fail_on = "houses"
    r = client.post("/api/v1/charts/positions", json={
        "datetime": "1985-04-12T23:20:50Z", "latitude": 0, "longitude": 0,
    })
    assert r.status_code == 502
    body = r.json()
    assert body["error"] == "ExternalCalculatorError"
    assert body["detail"] == "error: date beyond ephemeris range"


def test_transits(client):
    r = client.post("/api/v1/charts/transits", json={
        "birth_datetime": "1990-06-15T18:30:00Z", "latitude": 40.7128, "longitude": -74.006,
    })
    assert r.status_code == 200, r.text
    data = r.json()
    assert set(data) == {"natal_chart", "current_transits", "transit_aspects", "calculation_time"}


def test_solar_return(client):
    from main import app
    from routers import get_calculator
    from conftest import MovingSunCalculator

    app.dependency_overrides[get_calculator] = lambda: MovingSunCalculator()
    r = client.post("/api/v1/charts/solar-return", json={
        "birth_datetime": "1990-06-15T18:30:00Z", "birth_latitude": 40.7128,
        "birth_longitude": -74.006, "return_year": 2025,
    })
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["return_datetime"].startswith("2025-06-")
    assert abs(data["return_sun_longitude"] - data["natal_sun_longitude"]) < 1e-3


def test_solar_return_year_out_of_range(client):
    r = client.post("/api/v1/charts/solar-return", json={
        "birth_datetime": "1990-06-15T18:30:00Z", "birth_latitude": 0,
        "birth_longitude": 0, "return_year": 2200,
    })
    assert r.status_code == 422


def test_solar_return_without_natal_sun_is_bad_gateway(client):
    client.calculator.body_output = "".join(
        line + "\n" for line in BODY_OUTPUT.splitlines() if not line.startswith("Sun"))
    r = client.post("/api/v1/charts/solar-return", json={
        "birth_datetime": "1990-06-15T18:30:00Z", "birth_latitude": 0,
        "birth_longitude": 0, "return_year": 2025,
    })
    assert r.status_code == 502
    assert r.json()["error"] == "ExternalCalculatorError"


def test_synastry(client):
    r = client.post("/api/v1/charts/synastry", json={
        "person1_datetime": "1990-06-15T18:30:00Z", "person1_latitude": 40.7128, "person1_longitude": -74.006,
        "person2_datetime": "1988-11-02T07:45:00Z", "person2_latitude": 51.5074, "person2_longitude": -0.1278,
    })
    assert r.status_code == 200, r.text
    aspects = r.json()["synastry_aspects"]
    assert aspects[0]["orb"] <= aspects[-1]["orb"]
    assert {"person1_planet", "person2_planet", "aspect_type", "orb", "exact_angle",
            "person1_position", "person2_position"} == set(aspects[0])


def test_aspect_config(client):
    aspects = client.get("/api/v1/config/aspects").json()["aspects"]
    assert [(a["name"], a["angle"], a["orb"]) for a in aspects] == [
        ("conjunction", 0, 8), ("semisextile", 30, 3), ("sextile", 60, 6), ("square", 90, 8),
        ("trine", 120, 8), ("quincunx", 150, 3), ("opposition", 180, 8),
    ]


def test_fake_calculator_is_injected(client):
    assert isinstance(client.calculator, FakeCalculator)
    client.post("/api/v1/charts/positions", json={"datetime": "2000-01-01T00:00:00Z", "latitude": 0, "longitude": 0})
    assert len(client.calculator.calls) == 2
