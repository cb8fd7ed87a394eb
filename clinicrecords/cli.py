"""
Interactive CLI for the clinic records tool.
Pick a screen (doctors, patients, ...) and list, filter, add, edit or delete records.
"""

from clinicrecords.config import MAX_PREVIEW_ROWS
from clinicrecords.database import build_schema_summary, create_schema, init_engine
from clinicrecords.errors import ClinicRecordsError
from clinicrecords.fields import CHECKBOX
from clinicrecords.screens import PatientScreen, build_screens, doctor_details_form
from clinicrecords.services import build_services

HELP = """Commands:
  list                 show all records
  filter               filter records (blank fields are ignored)
  add                  add a record
  edit <key>           edit a record (visits: <patient_id> <doctor_id> <YYYY-MM-DD>)
  delete <key>         delete a record
  primary <patient_id> show a patient's primary doctor (patients screen)
  schema               show the database tables
  back                 choose another screen
  quit                 exit"""


class Quit(Exception):
    """Raised to leave the REPL from inside a screen."""


def print_table(screen, items) -> None:
    print(f"\n[{screen.name}] {len(items)} record(s)")
    if not items:
        print("(no rows)")
        return
    df = screen.table(items)
    print(df.head(MAX_PREVIEW_ROWS).to_string(index=False))
    if len(df) > MAX_PREVIEW_ROWS:
        print(f"... {len(df) - MAX_PREVIEW_ROWS} more")


def fill_form(form, ask=input) -> bool:
    """Prompt for every field, then submit.

    Returns False when the user cancels.  A failed save prints the error
    and offers to edit the form again.
    """
    print(f"\n== {form.title} ==")
    while True:
        for f in form.fields:
            current = form.get_value(f.name)
            if f.read_only:
                print(f"{f.label}: {current}")
                continue
            if f.kind == CHECKBOX:
                answer = ask(f"{f.label} [{'Y/n' if current else 'y/N'}]: ").strip().lower()
                if answer:
                    form.set_value(f.name, answer in {"y", "yes"})
                continue
            answer = ask(f"{f.label} [{current}]: ").strip()
            if answer:
                form.set_value(f.name, answer)

        for name, msg in form.warnings().items():
            print(f"[WARN] {form.field(name).label}: {msg}")

        choice = ask(f"{form.save_label} / {form.cancel_label} / Edit again? [s/c/e]: ")
        choice = choice.strip().lower()
        if choice in {"c", "cancel"}:
            form.cancel()
            return False
        if choice in {"e", "edit"}:
            continue
        try:
            form.submit()
            return True
        except ClinicRecordsError as e:
            print(f"\n[ERROR] {e}")
            if ask("Edit and try again? [y/N]: ").strip().lower() not in {"y", "yes"}:
                form.cancel()
                return False


def _find(screen, args):
    key = screen.parse_key(args)
    item = screen.get(key)
    if item is None:
        print(f"[{screen.name}] No {screen.title.lower()} found for {' '.join(args)}")
    return item


def run_command(screen, line: str, engine=None, ask=input) -> bool:
    """Run one screen command. Returns False to go back to the screen menu."""
    parts = line.split()
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]

    if cmd in {"quit", "exit"}:
        raise Quit()
    if cmd == "back":
        return False
    if cmd in {"help", "?"}:
        print(HELP)
        return True

    try:
        if cmd == "list":
            print_table(screen, screen.load())

        elif cmd == "filter":
            shown = []
            form = screen.filter_form(lambda criteria: shown.extend(screen.apply_filters(criteria)))
            if fill_form(form, ask):
                print_table(screen, shown)

        elif cmd == "add":
            if fill_form(screen.edit_form(), ask):
                print(f"[{screen.name}] Saved.")

        elif cmd == "edit":
            item = _find(screen, args)
            if item is not None and fill_form(screen.edit_form(item), ask):
                print(f"[{screen.name}] Saved.")

        elif cmd == "delete":
            item = _find(screen, args)
            if item is not None:
                confirm = ask(f"Delete {screen.title.lower()} {' '.join(args)}? [y/N]: ")
                if confirm.strip().lower() in {"y", "yes"}:
                    screen.delete(item)

        elif cmd == "primary":
            if not isinstance(screen, PatientScreen):
                print("[WARN] 'primary' is only available on the patients screen.")
            elif len(args) != 1:
                print("Usage: primary <patient_id>")
            else:
                doctor = screen.primary_doctor(args[0])
                if doctor is None:
                    print(f"[patients] No primary doctor found for patient {args[0]}")
                else:
                    form = doctor_details_form(doctor, "Primary Doctor Details")
                    print(f"\n== {form.title} ==")
                    for f in form.fields:
                        print(f"{f.label}: {form.get_value(f.name)}")

        elif cmd == "schema":
            if engine is None:
                print("[WARN] No database engine available.")
            else:
                print(build_schema_summary(engine))

        else:
            print(f"Unknown command '{cmd}'. Type 'help' for the list.")

    except ClinicRecordsError as e:
        print(f"\n[ERROR] {e}")
    return True


def main():
    print("=== Clinic Records: doctors, patients, drugs, prescriptions, visits ===\n")

    engine = init_engine()
    create_schema(engine)
    screens = build_screens(build_services(engine))

    while True:
        try:
            choice = input(f"\nChoose a screen ({', '.join(screens)}) or 'quit': ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not choice:
            continue
        if choice in {"quit", "exit"}:
            print("Goodbye.")
            break
        screen = screens.get(choice)
        if screen is None:
            print(f"Unknown screen '{choice}'.")
            continue

        print(f"\n[{screen.name}] Type 'help' for commands.")
        try:
            while True:
                try:
                    line = input(f"{screen.name}> ")
                except (EOFError, KeyboardInterrupt):
                    raise Quit()
                if not run_command(screen, line, engine):
                    break
        except Quit:
            print("\nGoodbye.")
            break


if __name__ == "__main__":
    main()
