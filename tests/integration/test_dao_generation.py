"""
Integration tests for data access model generation, including running the
generated modules against an in-memory database.
"""

import importlib.util

import pytest

from oolong.api.generators.dao_generator import DaoGenerator
from oolong.api.generators.mysql import MySQLModeler
from oolong.errors import ModelUsageError, ModelValidationError

CUSTOMER = """
    schema crm { entities [customer] }

    entity customer {
      with autoId, atLeastOneNotNull(["email", "mobile"])
      has {
        name
        email optional
        mobile: phone optional
      }
    }
"""


class RecordingDb:
    """Captures inserts and serves canned rows."""

    def __init__(self, rows=None):
        self.rows = rows or []
        self.inserted = []
        self.procedures = []

    def find(self, table, condition=None, order_by=None, limit=None, offset=None):
        matches = [r for r in self.rows if all(r.get(k) == v for k, v in (condition or {}).items())]
        return matches[:limit] if limit is not None else matches

    def insert(self, table, data):
        self.inserted.append((table, dict(data)))
        return len(self.inserted)

    def call_procedure(self, name, args):
        self.procedures.append((name, args))
        return [{"id": 1}, {"id": 2}]


def load_generated(path):
    """Import one generated module straight from its file."""
    spec = importlib.util.spec_from_file_location(f"generated_{path.stem}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def generate(link, temp_output_dir):
    """Link main.ool, model it and generate its models; returns the package dir."""
    def _generate():
        schema = MySQLModeler(temp_output_dir).modeling(link())
        return DaoGenerator(temp_output_dir).generate(schema)
    return _generate


class TestGeneratedFiles:

    def test_layout(self, write_ool, generate, temp_output_dir):
        write_ool("main", CUSTOMER)
        package_dir = generate()

        assert package_dir == temp_output_dir / "models" / "crm"
        assert (package_dir / "customer.py").is_file()
        for directory in ("validators", "modifiers", "composers"):
            assert (package_dir / directory / "__init__.py").is_file()

        init = (package_dir / "__init__.py").read_text(encoding="utf-8")
        assert "from .customer import Customer" in init
        assert '"customer": Customer,' in init

    def test_entity_source(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        source = (generate() / "customer.py").read_text(encoding="utf-8")

        assert "class Customer(EntityModel):" in source
        assert "if 'email' in latest:" in source
        assert "validators['isEmail']" in source
        assert "modifiers['trim']" in source
        compile(source, "customer.py", "exec")

    def test_user_functor_stub_is_written_once(self, write_ool, generate):
        write_ool("main", """
            schema blog { entities [article] }
            entity article {
              with autoId
              has slug: text(40) ~isSlug
            }
        """)
        package_dir = generate()
        stub = package_dir / "validators" / "article_isSlug.py"

        assert "def isSlug(value):" in stub.read_text(encoding="utf-8")
        assert "from .validators.article_isSlug import isSlug" in \
            (package_dir / "article.py").read_text(encoding="utf-8")

        stub.write_text("def isSlug(value):\n    return '-' in value\n", encoding="utf-8")
        generate()
        assert "'-' in value" in stub.read_text(encoding="utf-8")


class TestGeneratedRuntime:

    def test_at_least_one_contact_is_required(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        module = load_generated(generate() / "customer.py")
        customers = module.Customer(RecordingDb())

        with pytest.raises(ModelValidationError) as exc:
            customers.create({"name": "Bob"})
        assert str(exc.value) == 'At least one of these fields "email", "mobile" should not be null.'

    def test_explicit_nulls_still_reach_the_contact_rule(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        module = load_generated(generate() / "customer.py")

        with pytest.raises(ModelValidationError) as exc:
            module.Customer(RecordingDb()).create({"name": "Bob", "email": None, "mobile": None})
        assert str(exc.value) == 'At least one of these fields "email", "mobile" should not be null.'

    def test_explicit_null_skips_validators(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        db = RecordingDb()
        module = load_generated(generate() / "customer.py")

        created = module.Customer(db).create({"name": "Bob", "email": None, "mobile": "+8613800000000"})

        assert created["email"] is None
        assert db.inserted[0][1]["email"] is None
        assert db.inserted[0][1]["mobile"] == "+8613800000000"

    def test_create_runs_field_functors(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        db = RecordingDb()
        module = load_generated(generate() / "customer.py")

        created = module.Customer(db).create({"name": "Bob", "email": "  Bob@Example.com "})

        assert created["email"] == "Bob@example.com"
        assert created["id"] == 1
        assert db.inserted == [("customer", {"name": "Bob", "email": "Bob@example.com"})]

    def test_invalid_value(self, write_ool, generate):
        write_ool("main", CUSTOMER)
        module = load_generated(generate() / "customer.py")

        with pytest.raises(ModelValidationError, match='Invalid "email"'):
            module.Customer(RecordingDb()).create({"name": "Bob", "email": "not-an-email"})

    def test_interface(self, write_ool, generate):
        write_ool("main", """
            schema s { entities [user] }

            entity user {
              with autoId
              has {
                name
                email
              }
              interface getByEmail {
                accept {
                  address: text(200)
                }
                findOne user case {
                  when address exists => { email: address }
                  else throw ModelUsageError("Address required")
                }
                return user
              }
            }
        """)
        path = generate() / "user.py"
        assert "def getByEmail(self, address):" in path.read_text(encoding="utf-8")

        users = load_generated(path).User(RecordingDb([{"id": 7, "email": "a@b.c"}]))
        assert users.getByEmail("a@b.c") == {"id": 7, "email": "a@b.c"}
        with pytest.raises(ModelUsageError, match="Address required"):
            users.getByEmail(None)

    def test_view(self, write_ool, generate):
        write_ool("main", """
            schema s {
              entities [user]
              views [byAge]
            }

            entity user {
              with autoId
              has age: int(3)
            }

            view byAge {
              entity user
              list
              accept {
                minAge: user.age
              }
              select by user.age >= minAge
            }
        """)
        path = generate() / "by_age_view.py"
        db = RecordingDb()

        rows = load_generated(path).ByAgeView(db).load(minAge="18")

        assert rows == [{"id": 1}, {"id": 2}]
        assert db.procedures == [("sp_by_age", [18])]
