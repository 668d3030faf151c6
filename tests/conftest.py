"""
Pytest configuration and shared fixtures for the procurement workflow test suite.
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="boxplant_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path, monkeypatch) -> "Config":
    """Provide a configuration isolated from any settings file in the repo."""
    monkeypatch.setenv("CONFIG_DIR", str(temp_dir / "config"))
    from config import Config

    config = Config()
    config.suppliers_csv = temp_dir / "data" / "suppliers.csv"
    config.materials_csv = temp_dir / "data" / "raw_materials.csv"
    config.currency = "INR"
    config.require_known_supplier = True
    config.suppliers_csv.parent.mkdir(parents=True, exist_ok=True)
    return config


@pytest.fixture
def sample_suppliers_csv(temp_dir: Path) -> Path:
    """Create a sample suppliers CSV file."""
    csv_path = temp_dir / "suppliers.csv"
    content = """id,name,email,phone,gst_number,product_type,state,address,pin_code,contact_persons,status
SUP001,Paper Mills Pvt Ltd,info@papermills.com,+91 9876543210,27AAAAA0000A1Z5,Corrugated Sheets,Maharashtra,"123 Industrial Area, Mumbai",400001,Rajesh Kumar:+91 9876543211|Priya Sharma:+91 9876543212,Active
SUP002,Adhesive Solutions,sales@adhesive.com,+91 9876543213,29BBBBB0000B1Z5,Adhesive & Glue,Karnataka,"456 Chemical Complex, Bangalore",560001,Amit Patel:+91 9876543214,Active
SUP003,Wire Industries Ltd,,,,Stitching Wire,,,,,Inactive"""
    csv_path.write_text(content)
    return csv_path


@pytest.fixture
def sample_materials_csv(temp_dir: Path) -> Path:
    """Create a sample raw materials CSV file."""
    csv_path = temp_dir / "raw_materials.csv"
    content = """id,name,product_type,unit,current_stock,minimum_stock,unit_price,supplier_id,batch_number,received_date,specifications
RM001,5-Ply Corrugated Sheet - Brown,Corrugated Sheets,Pieces,2500,500,45.50,SUP001,B2024001,2024-06-10,"{""grade"": ""5-Ply"", ""color"": ""Brown""}"
RM002,White PVA Adhesive,Adhesive & Glue,KG,150,200,85.00,SUP002,ADH2024005,2024-06-05,
RM003,Galvanized Stitching Wire,Stitching Wire,Rolls,0,20,125.00,SUP003,WIRE2024003,2024-06-08,"""
    csv_path.write_text(content)
    return csv_path


@pytest.fixture
def store():
    """Provide a store holding two suppliers and three raw materials."""
    from models.material import RawMaterial, stock_status_for
    from models.supplier import Supplier
    from workflow.store import InMemoryStore

    store = InMemoryStore()
    for supplier in [
        Supplier(id="SUP001", name="Paper Mills Pvt Ltd", product_type="Corrugated Sheets"),
        Supplier(id="SUP002", name="Adhesive Solutions", product_type="Adhesive & Glue"),
    ]:
        store.suppliers[supplier.id] = supplier

    for mid, name, unit, current, minimum, supplier_id in [
        ("RM001", "5-Ply Corrugated Sheet - Brown", "Pieces", 2500, 500, "SUP001"),
        ("RM002", "White PVA Adhesive",             "KG",     150,  200, "SUP002"),
        ("RM003", "Galvanized Stitching Wire",      "Rolls",  75,   20,  "SUP001"),
    ]:
        store.materials[mid] = RawMaterial(
            id=mid, name=name, unit=unit,
            current_stock=current, minimum_stock=minimum, supplier_id=supplier_id,
            status=stock_status_for(current, minimum),
        )
    return store


@pytest.fixture
def workflow(store, test_config):
    """Provide a workflow bound to the seeded store."""
    from workflow.purchase_orders import PurchaseOrderWorkflow
    return PurchaseOrderWorkflow(store, test_config)


@pytest.fixture
def draft_po(workflow):
    """A draft PO for 500 corrugated sheets."""
    return workflow.create_purchase_order(
        "SUP001",
        [{"material_id": "RM001", "quantity": 500, "rate": 45.50}],
        requested_by="John Doe",
    )


def _advance_to_acknowledged(workflow, po_id):
    workflow.submit(po_id)
    workflow.approve(po_id, approved_by="Jane Smith")
    workflow.send(po_id)
    return workflow.acknowledge(po_id)


@pytest.fixture
def acknowledged_po(workflow, draft_po):
    """The 500-sheet PO, acknowledged by the supplier and awaiting delivery."""
    return _advance_to_acknowledged(workflow, draft_po.id)


@pytest.fixture
def two_item_po(workflow):
    """An acknowledged PO with sheets and adhesive lines."""
    po = workflow.create_purchase_order(
        "SUP001",
        [
            {"material_id": "RM001", "quantity": 100, "rate": 45.50},
            {"material_id": "RM002", "quantity": 40.5, "rate": 85.00},
        ],
    )
    return _advance_to_acknowledged(workflow, po.id)


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
