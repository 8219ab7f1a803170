API = "/api/v1"
POOL = f"{API}/shortid-pool"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# =====================================================
# shortID池
# =====================================================

def test_generate_and_check(client):
    response = client.post(f"{POOL}/generate", json={"count": 3, "batchNo": "rack-a"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["shortIds"] == [1, 2, 3]
    assert response.headers["X-Request-ID"]

    body = client.post(f"{POOL}/check", json={"shortId": "E-00002"}).json()
    assert body["exists"] is True
    assert body["usedBy"] == "pool"
    assert body["entityType"] is None
    assert body["details"]["batchNo"] == "rack-a"

    response = client.post(f"{POOL}/check", json={"shortId": 500})
    assert response.json()["exists"] is False


def test_generate_rejects_invalid_count(client):
    response = client.post(f"{POOL}/generate", json={"count": 0})
    assert response.status_code == 400
    body = response.json()
    assert body["errorType"] == "INVALID_ARGUMENT"
    assert body["code"] == 1001
    assert body["data"] is None


def test_request_validation_error_returns_400(client):
    response = client.post(f"{POOL}/generate", json={})
    assert response.status_code == 400
    assert response.json()["code"] == 1001


def test_bind_conflict_and_cancel_errors(client):
    client.post(f"{POOL}/generate", json={"count": 2})

    response = client.post(f"{POOL}/bind", json={"shortId": 2, "entityType": "room", "entityId": "r-1"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "bound"}

    check = client.post(f"{POOL}/check", json={"shortId": 2}).json()
    assert check["usedBy"] == "entity"
    assert check["entityType"] == "ROOM"

    response = client.post(f"{POOL}/bind", json={"shortId": 2, "entityType": "ROOM", "entityId": "r-2"})
    assert response.status_code == 409
    assert response.json()["errorType"] == "CONFLICT"
    assert response.json()["details"]["entityId"] == "r-1"

    response = client.post(f"{POOL}/cancel", json={"shortId": 2})
    assert response.status_code == 409
    assert response.json()["errorType"] == "INVALID_STATE"

    response = client.post(f"{POOL}/cancel", json={"shortId": 99, "reason": "lost"})
    assert response.status_code == 404
    assert response.json()["errorType"] == "NOT_FOUND"

    response = client.post(f"{POOL}/check", json={"shortId": "E-0000X"})
    assert response.status_code == 400
    assert response.json()["errorType"] == "INVALID_FORMAT"


def test_out_of_range_short_id_is_rejected_before_storage(client):
    oversized = "99999999999999999999999"

    requests = [
        (f"{POOL}/check", {"shortId": oversized}),
        (f"{POOL}/bind", {"shortId": 2 ** 40, "entityType": "ROOM", "entityId": "room-1"}),
        (f"{POOL}/cancel", {"shortId": "E-2147483648"}),
        (f"{API}/cables/endpoints-by-shortid", {"shortId": oversized}),
    ]
    for url, payload in requests:
        response = client.post(url, json=payload)
        assert response.status_code == 400, url
        assert response.json()["errorType"] == "INVALID_FORMAT"

    response = client.get(f"{API}/locations/by-shortid/ROOM/{oversized}")
    assert response.status_code == 400
    assert response.json()["errorType"] == "INVALID_FORMAT"


def test_print_task_flow(client):
    client.post(f"{POOL}/generate", json={"count": 5})

    response = client.post(f"{POOL}/print-task/create", json={"name": "batch-A", "count": 3, "createdBy": "alice"})
    assert response.status_code == 200
    body = response.json()
    assert body["shortIds"] == [6, 7, 8]
    task = body["printTask"]
    assert task["status"] == "PENDING"
    assert task["shortIdCount"] == 3
    assert task["entityType"] == "MIXED"

    response = client.get(f"{POOL}/print-task/{task['id']}/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.decode("utf-8-sig").splitlines()[1].startswith("E-00006,MIXED,batch-A,")

    response = client.get(f"{POOL}/print-task/{task['id']}/export", params={"format": "xlsx"})
    assert response.status_code == 200
    assert response.content[:2] == b"PK"

    response = client.get(f"{POOL}/print-task/{task['id']}/export", params={"format": "pdf"})
    assert response.status_code == 400

    response = client.post(f"{POOL}/print-task/{task['id']}/complete", json={"filePath": "/labels/a.csv"})
    assert response.status_code == 200
    assert response.json()["task"]["status"] == "COMPLETED"
    assert response.json()["task"]["filePath"] == "/labels/a.csv"

    response = client.post(f"{POOL}/print-task/{task['id']}/complete")
    assert response.status_code == 409

    response = client.post(f"{POOL}/print-tasks", json={"page": 1, "pageSize": 10})
    body = response.json()
    assert body["total"] == 1
    assert body["totalPages"] == 1
    assert body["tasks"][0]["shortIdCount"] == 3


def test_print_task_not_found(client):
    assert client.post(f"{POOL}/print-task/42/start").status_code == 404
    assert client.get(f"{POOL}/print-task/42/export").status_code == 404


def test_stats_and_records(client):
    client.post(f"{POOL}/generate", json={"count": 4, "batchNo": "b1"})
    client.post(f"{POOL}/bind", json={"shortId": 1, "entityType": "PANEL", "entityId": "p-1"})
    client.post(f"{POOL}/cancel", json={"shortId": 2, "reason": "torn"})

    stats = client.get(f"{POOL}/stats").json()
    assert stats["total"] == 4
    assert stats["bound"] == 1
    assert stats["cancelled"] == 1
    assert stats["byType"] == {"PANEL": 1, "UNASSIGNED": 3}

    stats = client.get(f"{POOL}/stats", params={"entityType": "PANEL"}).json()
    assert stats["total"] == 1
    assert stats["byType"] is None

    body = client.post(f"{POOL}/records", json={"page": 1, "pageSize": 3, "batchNo": "b1"}).json()
    assert body["total"] == 4
    assert body["totalPages"] == 2
    assert [r["displayId"] for r in body["records"]] == ["E-00004", "E-00003", "E-00002"]

    response = client.post(f"{POOL}/records", json={"pageSize": 1000})
    assert response.status_code == 400


# =====================================================
# 线缆
# =====================================================

def test_cable_scan_flow(client, location_factory):
    local = location_factory("sw-01")
    remote = location_factory("sw-02")
    local_port, remote_port = local["ports"][0].id, remote["ports"][0].id

    response = client.post(f"{API}/cables/connect-single-port", json={
        "portId": local_port,
        "shortId": "E-00010",
        "type": "CAT6",
        "label": "uplink",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "new"
    assert body["connectedEndpoint"]["endType"] == "A"
    assert body["connectedEndpoint"]["location"]["port"]["id"] == local_port
    assert body["otherEndpoint"]["portId"] is None
    assert body["peerInfo"] is None

    response = client.post(f"{API}/cables/connect-single-port", json={"portId": remote_port, "shortId": 10})
    body = response.json()
    assert body["outcome"] == "continuation"
    assert body["peerInfo"]["device"]["name"] == "sw-01"
    assert body["peerInfo"]["dataCenter"]["name"] == "DC-sw-01"
    cable_id = body["cable"]["id"]

    response = client.post(f"{API}/cables/endpoints-by-shortid", json={"shortId": "E-00010"})
    body = response.json()
    assert body["cable"]["label"] == "uplink"
    assert body["endpointA"]["shortId"] == 10
    assert body["endpointB"]["location"]["device"]["name"] == "sw-02"

    # 线缆两端都已接入
    third = local["ports"][1].id
    response = client.post(f"{API}/cables/connect-single-port", json={"portId": third, "shortId": 10})
    assert response.status_code == 409
    assert response.json()["errorType"] == "INVALID_STATE"

    assert client.delete(f"{API}/cables/{cable_id}").status_code == 200
    assert client.get(f"{API}/cables/{cable_id}").status_code == 404

    check = client.post(f"{POOL}/check", json={"shortId": 10}).json()
    assert check["details"]["status"] == "CANCELLED"


def test_cable_create_with_occupied_port(client, location_factory):
    site = location_factory()
    ports = [p.id for p in site["ports"]]
    payload = {"portAId": ports[0], "portBId": ports[1], "shortIdA": 1, "shortIdB": 2, "type": "CAT6"}
    assert client.post(f"{API}/cables/create", json=payload).status_code == 200

    payload = {"portAId": ports[2], "portBId": ports[1], "shortIdA": 3, "shortIdB": 4, "type": "CAT6"}
    response = client.post(f"{API}/cables/create", json=payload)
    assert response.status_code == 409
    assert response.json()["errorType"] == "PORT_UNAVAILABLE"

    check = client.post(f"{POOL}/check", json={"shortId": 3}).json()
    assert check["exists"] is False


def test_cable_scan_of_location_label_is_mismatch(client, location_factory):
    site = location_factory()
    client.post(f"{POOL}/generate", json={"count": 1})
    client.post(f"{POOL}/bind", json={"shortId": 1, "entityType": "DEVICE", "entityId": site["device"].id})

    response = client.post(f"{API}/cables/connect-single-port", json={
        "portId": site["ports"][0].id,
        "shortId": 1,
        "type": "CAT6",
    })
    assert response.status_code == 409
    assert response.json()["errorType"] == "ENTITY_TYPE_MISMATCH"
    assert response.json()["details"]["actualEntityType"] == "DEVICE"


def test_branch_cable_and_disconnect(client, location_factory):
    site = location_factory()
    ports = [p.id for p in site["ports"]]

    response = client.post(f"{API}/cables/create-branch", json={
        "portAId": ports[0],
        "shortIdA": 20,
        "branches": [{"portId": ports[1], "shortId": 21}, {"portId": ports[2], "shortId": 22}],
        "type": "FIBER_MM",
    })
    assert response.status_code == 200
    endpoints = {e["endType"]: e for e in response.json()["endpoints"]}
    assert set(endpoints) == {"A", "B1", "B2"}

    response = client.post(f"{API}/cables/endpoints/{endpoints['B2']['id']}/disconnect")
    assert response.status_code == 200
    assert response.json()["portId"] is None


# =====================================================
# 位置
# =====================================================

def test_location_create_and_lookup(client):
    client.post(f"{POOL}/generate", json={"count": 2})

    response = client.post(f"{API}/locations/datacenters", json={"name": "DC-1", "shortId": "E-00001"})
    assert response.status_code == 200
    dc = response.json()
    assert dc["shortId"] == 1

    response = client.post(f"{API}/locations/rooms", json={"dataCenterId": dc["id"], "name": "R-1", "shortId": 1})
    assert response.status_code == 409

    response = client.post(f"{API}/locations/rooms", json={"dataCenterId": dc["id"], "name": "R-1", "shortId": 2})
    room = response.json()

    response = client.get(f"{API}/locations/by-shortid/room/E-00002")
    assert response.status_code == 200
    body = response.json()
    assert body["entityType"] == "ROOM"
    assert body["entityId"] == room["id"]
    assert body["location"]["dataCenter"]["name"] == "DC-1"

    assert client.get(f"{API}/locations/by-shortid/room/E-00009").status_code == 404
    assert client.get(f"{API}/locations/by-shortid/rack/1").status_code == 400

    response = client.post(f"{API}/locations/datacenters", json={"name": "DC-2", "shortId": 77})
    assert response.status_code == 404


def test_port_status_and_delete(client, location_factory):
    site = location_factory()
    port_id = site["ports"][0].id

    response = client.put(f"{API}/locations/ports/{port_id}/status", json={"status": "FAULTY"})
    assert response.status_code == 200
    assert response.json()["status"] == "FAULTY"

    response = client.put(f"{API}/locations/ports/{port_id}/status", json={"status": "OCCUPIED"})
    assert response.status_code == 400

    response = client.post(f"{API}/locations/panels/{site['panel'].id}/ports/bulk", json={"count": 2, "start": 10})
    assert [p["number"] for p in response.json()["ports"]] == ["10", "11"]

    assert client.delete(f"{API}/locations/PORT/{port_id}", params={"reason": "removed"}).status_code == 200
    assert client.delete(f"{API}/locations/PANEL/{site['panel'].id}").status_code == 409


def test_request_id_is_echoed_and_logged(client, caplog):
    with caplog.at_level("INFO"):
        response = client.post(f"{POOL}/generate", json={"count": 1}, headers={"X-Request-ID": "scan-42"})

    assert response.headers["X-Request-ID"] == "scan-42"
    access_logs = [r for r in caplog.records if r.name == "dcim.middleware.logging_middleware"]
    assert access_logs and access_logs[-1].requestId == "scan-42"
