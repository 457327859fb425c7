from datetime import date

from hope_assessment import AssessmentSession


def main() -> None:
    session = AssessmentSession(reason_for_record="2")
    print(f"Variant: {session.variant} ({session.status})")

    session.set_field("J2050.A", "1")
    session.set_field("J2050.B", "2024-01-05")
    session.set_field("J2051.A", "3")
    print(f"Follow-up required: {session.active.is_required('J2052.A')}")

    result = session.set_field("J2050.A", "0")
    print(f"Screening undone, cleared: {', '.join(result.cleared)}")

    report = session.validate(today=date(2024, 2, 1))
    print(f"Accepted: {report.accepted}")
    print(f"Missing required fields: {len(report.missing_required)}")
    for violation in report.ordering_violations:
        print(f"Out of order: {violation.earlier} > {violation.later}")


if __name__ == "__main__":
    main()
