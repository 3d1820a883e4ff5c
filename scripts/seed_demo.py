"""Seed a demo customer, two sites, a few guards and this week's shifts."""

import sys
from datetime import date, time, timedelta
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from guardshift.db import SessionLocal  # noqa: E402  (import after sys.path tweak)
from guardshift.errors import ShiftEngineError  # noqa: E402
from guardshift.models import Customer, Site, Worker  # noqa: E402
from guardshift.schemas.shift import ShiftTemplate  # noqa: E402
from guardshift.services import assignments, shifts  # noqa: E402

DEMO_COMPANY = "Demo Logistics Park"
DEMO_GUARDS = [
    ("Dana", "Levi", True),
    ("Omer", "Cohen", False),
    ("Noa", "Mizrahi", True),
]


def ensure_customer(session) -> Customer:
    customer = session.query(Customer).filter(Customer.company_name == DEMO_COMPANY).one_or_none()
    if customer is None:
        customer = Customer(company_name=DEMO_COMPANY)
        session.add(customer)
        session.flush()
    return customer


def ensure_site(session, customer: Customer, name: str, latitude: float, longitude: float) -> Site:
    site = session.query(Site).filter(Site.customer_id == customer.id, Site.name == name).one_or_none()
    if site is None:
        site = Site(customer_id=customer.id, name=name, address=f"{name}, Demo City", latitude=latitude, longitude=longitude)
        session.add(site)
        session.flush()
    return site


def ensure_worker(session, first_name: str, last_name: str, armed: bool) -> Worker:
    worker = (
        session.query(Worker)
        .filter(Worker.first_name == first_name, Worker.last_name == last_name)
        .one_or_none()
    )
    if worker is None:
        worker = Worker(
            first_name=first_name,
            last_name=last_name,
            phone="050-0000000",
            has_weapon_license=armed,
            weapon_license_expiry=date.today() + timedelta(days=365) if armed else None,
        )
        session.add(worker)
        session.flush()
    return worker


def main() -> int:
    session = SessionLocal()
    try:
        customer = ensure_customer(session)
        gate = ensure_site(session, customer, "North Gate", 32.0853, 34.7818)
        depot = ensure_site(session, customer, "Depot", 32.0790, 34.7900)
        guards = [ensure_worker(session, *guard) for guard in DEMO_GUARDS]
        session.commit()

        start = date.today()
        end = start + timedelta(days=6)
        every_day = range(7)
        for site, window in ((gate, (time(7, 0), time(15, 0))), (depot, (time(15, 0), time(23, 0)))):
            template = ShiftTemplate(customer_id=customer.id, site_id=site.id, start_time=window[0], end_time=window[1])
            batch = shifts.create_recurring_shifts(session, template, start, end, every_day)
            print(f"  {site.name}: {batch.count} shifts")

        for item in shifts.list_shifts(session, start_date=start, end_date=start):
            for guard in guards:
                try:
                    assignments.assign(session, item.id, guard.id)
                    break
                except ShiftEngineError as exc:
                    print(f"  skipped {guard.full_name} for shift {item.id}: {exc.message}")
    finally:
        session.close()
    print("Demo data ready.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
