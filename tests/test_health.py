from botocore.exceptions import ClientError

from app.db import dynamo, init_tables


class FakeTable:
    def __init__(self, name, fail=False):
        self.name = name
        self.fail = fail

    def scan(self, Limit):
        if self.fail:
            raise ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "Scan")
        return {"Items": []}

    def wait_until_exists(self):
        pass


class FakeResource:
    def __init__(self, existing):
        self.existing = [FakeTable(name) for name in existing]
        self.created = []

    @property
    def tables(self):
        resource = self

        class _Tables:
            def all(self):
                return list(resource.existing)

        return _Tables()

    def create_table(self, **definition):
        self.created.append(definition)
        return FakeTable(definition["TableName"])


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["service"] == "BudgetBloom"


def test_status_reports_degraded_when_a_table_is_missing(client, monkeypatch):
    monkeypatch.setattr(dynamo, "users_table", FakeTable("users"))
    monkeypatch.setattr(dynamo, "expenses_table", FakeTable("expenses"))
    monkeypatch.setattr(dynamo, "savings_goals_table", FakeTable("goals", fail=True))

    body = client.get("/api/status").json()
    assert body["tables"]["expenses"]["status"] == "accessible"
    assert body["tables"]["savings_goals"]["status"] == "error"
    assert body["overall_status"] == "degraded"


def test_create_tables_skips_existing(monkeypatch):
    users_table = init_tables.TABLE_DEFINITIONS[0]["TableName"]
    resource = FakeResource(existing=[users_table])
    monkeypatch.setattr(dynamo, "dynamodb", resource)

    created = init_tables.create_tables()

    assert users_table not in created
    assert len(created) == 2
    assert all(definition["BillingMode"] == "PAY_PER_REQUEST" for definition in resource.created)
