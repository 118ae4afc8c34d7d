import os
from typing import Optional

import click

from portal_cli.commands.export.results import export_results
from portal_cli.db.config import DATABASE_URL, SESSION_FILE, get_engine
from portal_cli.db.store import KeyValueStore
from portal_cli.exceptions import PortalError
from portal_cli.models import Course, Student, User
from portal_cli.portal import Portal
from portal_cli.services import FileSessionSlot, encode_payload
from portal_cli.utils.logging_config import configure_from_env, create_specialized_logger

ROLES = ["admin", "student", "lecturer"]
STAFF_ROLES = ("admin", "lecturer")


def get_portal() -> Portal:
    ctx = click.get_current_context()
    if ctx.obj.get("portal") is None:
        portal = Portal(
            KeyValueStore(get_engine(ctx.obj["database_url"])),
            session=FileSessionSlot(ctx.obj["session_file"]),
            audit_logger=create_specialized_logger("portal_cli.audit", "audit.log"),
        )
        ctx.obj["seeded"] = portal.bootstrap()
        ctx.obj["portal"] = portal
    return ctx.obj["portal"]


def require(*roles: str) -> User:
    """Return the logged in user or stop the command when the guard fails."""
    user = get_portal().identity.require_auth(roles)
    if user is None:
        fail("You must be logged in with a permitted role to do that.")
    return user  # type: ignore[return-value]


def fail(message: str) -> None:
    click.secho(message, fg="red")
    click.get_current_context().exit(1)


def find_student(portal: Portal, matric: str) -> Student:
    student = portal.registry.get_student_by_matric(matric)
    if student is None:
        fail(f"No student found with matric number {matric}")
    return student  # type: ignore[return-value]


def find_course(portal: Portal, code: str) -> Course:
    course = portal.registry.get_course_by_code(code)
    if course is None:
        fail(f"No course found with code {code}")
    return course  # type: ignore[return-value]


@click.group()
@click.option(
    "--database-url",
    envvar="PORTAL_DATABASE_URL",
    default=DATABASE_URL,
    show_default=True,
    help="SQLAlchemy URL of the portal store",
)
@click.option(
    "--session-file",
    envvar="PORTAL_SESSION_FILE",
    default=SESSION_FILE,
    show_default=True,
    help="File that keeps the logged in user between commands",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str, session_file: str) -> None:
    configure_from_env()
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url
    ctx.obj["session_file"] = session_file


@cli.command()
def init() -> None:
    """Create the portal store and seed the administrator account."""
    get_portal()
    if click.get_current_context().obj["seeded"]:
        click.secho("Portal initialised.", fg="green")
    else:
        click.echo("Portal store is already initialised.")


@cli.command()
@click.argument("username")
@click.option("--role", type=click.Choice(ROLES), required=True)
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, role: str, password: str) -> None:
    """Log in and keep the session for the following commands."""
    user = get_portal().identity.login(username, password, role)
    if user is None:
        fail("Invalid username, password or role.")
        return
    click.secho(f"Welcome, {user.name} ({user.role}).", fg="green")


@cli.command()
def logout() -> None:
    get_portal().identity.logout()
    click.echo("Logged out.")


@cli.command()
def whoami() -> None:
    user = get_portal().identity.current_session()
    if user is None:
        click.echo("Not logged in.")
        return
    click.echo(f"{user.name} <{user.username}> ({user.role})")


@cli.group()
def student() -> None:
    """Manage students."""
    pass


@student.command(name="add")
@click.option("--name", required=True)
@click.option("--username", required=True)
@click.option("--password", required=True)
@click.option("--matric", required=True)
@click.option("--department", default="")
@click.option("--level", default="")
@click.option("--study-center", default=None)
@click.option("--email", default=None)
@click.option("--phone", default=None)
def student_add(
    name: str,
    username: str,
    password: str,
    matric: str,
    department: str,
    level: str,
    study_center: Optional[str],
    email: Optional[str],
    phone: Optional[str],
) -> None:
    require("admin")
    try:
        student_id = get_portal().registry.add_student(
            name=name,
            username=username,
            password=password,
            matric=matric,
            department=department,
            level=level,
            study_center=study_center,
            email=email,
            phone=phone,
        )
    except PortalError as e:
        fail(str(e))
        return
    click.secho(f"Added student {matric} ({student_id})", fg="green")


@student.command(name="list")
def student_list() -> None:
    require(*STAFF_ROLES)
    profiles = get_portal().profiles.all_students_with_profiles()
    if not profiles:
        click.secho("No students found.", fg="yellow")
        return
    for p in profiles:
        click.echo(f"{p.matric:<15} {p.name or '':<30} {p.department:<20} {p.level}")


@student.command(name="show")
@click.argument("matric", required=False)
def student_show(matric: Optional[str]) -> None:
    """Show a student's profile, courses and GPA (your own when MATRIC is omitted)."""
    user = require(*ROLES)
    portal = get_portal()
    if user.role == "student":
        own = portal.registry.get_student_by_user_id(user.id)
        if own is None or (matric and matric != own.matric):
            fail("Students can only view their own profile.")
            return
        target = own
    elif matric:
        target = find_student(portal, matric)
    else:
        fail("Please give a matric number.")
        return

    profile = portal.profiles.student_full_profile(target.id)
    if profile is None:
        fail("Student not found.")
        return
    click.echo(f"Name:         {profile.name}")
    click.echo(f"Matric:       {profile.matric}")
    click.echo(f"Department:   {profile.department}")
    click.echo(f"Level:        {profile.level}")
    click.echo(f"Study center: {profile.study_center}")
    click.echo(f"Email:        {profile.email}")
    click.echo(f"GPA:          {portal.results.calc_gpa(profile.id)}")
    click.echo("Courses:")
    for course in portal.registry.get_enrolled_courses(profile.id):
        result = portal.results.get_result_for_student_course(profile.id, course.id)
        grade = f"{result.score} ({result.grade})" if result else "-"
        click.echo(f"  {course.code:<10} {course.title:<40} {grade}")


@cli.group()
def lecturer() -> None:
    """Manage lecturers."""
    pass


@lecturer.command(name="add")
@click.option("--name", required=True)
@click.option("--username", required=True)
@click.option("--password", required=True)
@click.option("--department", default="")
@click.option("--staff-id", default=None)
@click.option("--email", default=None)
@click.option("--phone", default=None)
def lecturer_add(
    name: str,
    username: str,
    password: str,
    department: str,
    staff_id: Optional[str],
    email: Optional[str],
    phone: Optional[str],
) -> None:
    require("admin")
    try:
        lecturer_id = get_portal().registry.add_lecturer(
            name=name,
            username=username,
            password=password,
            department=department,
            staff_id=staff_id,
            email=email,
            phone=phone,
        )
    except PortalError as e:
        fail(str(e))
        return
    click.secho(f"Added lecturer {lecturer_id}", fg="green")


@lecturer.command(name="list")
def lecturer_list() -> None:
    require("admin")
    profiles = get_portal().profiles.all_lecturers_with_profiles()
    if not profiles:
        click.secho("No lecturers found.", fg="yellow")
        return
    for p in profiles:
        click.echo(f"{p.id:<30} {p.staff_id:<20} {p.name or '':<30} {p.department}")


@cli.group()
def course() -> None:
    """Manage courses."""
    pass


@course.command(name="add")
@click.argument("code")
@click.argument("title")
@click.option("--units", default="3", help="Credit units (default: 3)")
@click.option("--lecturer-id", default=None)
def course_add(code: str, title: str, units: str, lecturer_id: Optional[str]) -> None:
    require("admin")
    try:
        course_id = get_portal().registry.add_course(code, title, units, lecturer_id)
    except PortalError as e:
        fail(str(e))
        return
    click.secho(f"Added course {code} ({course_id})", fg="green")


@course.command(name="assign")
@click.argument("code")
@click.argument("lecturer_id")
def course_assign(code: str, lecturer_id: str) -> None:
    require("admin")
    portal = get_portal()
    target = find_course(portal, code)
    if portal.registry.get_lecturer_by_id(lecturer_id) is None:
        fail(f"No lecturer found with id {lecturer_id}")
        return
    portal.registry.assign_lecturer_to_course(target.id, lecturer_id)
    click.secho(f"Assigned {lecturer_id} to {code}", fg="green")


@course.command(name="list")
def course_list() -> None:
    """List courses; lecturers see only the courses assigned to them."""
    user = require(*ROLES)
    portal = get_portal()
    if user.role == "lecturer":
        own = portal.registry.get_lecturer_by_user_id(user.id)
        courses = portal.registry.get_courses_for_lecturer(own.id) if own else []
    elif user.role == "student":
        own_student = portal.registry.get_student_by_user_id(user.id)
        courses = portal.registry.get_enrolled_courses(own_student.id) if own_student else []
    else:
        courses = portal.registry.get_courses()

    if not courses:
        click.secho("No courses found.", fg="yellow")
        return
    for c in courses:
        click.echo(f"{c.code:<10} {c.title:<40} {c.units:>2} units  {c.lecturer_id or '-'}")


@cli.command()
@click.argument("matric")
@click.argument("code")
@click.option("--semester", default=None, help="Semester (default: configured semester)")
def enroll(matric: str, code: str, semester: Optional[str]) -> None:
    """Enroll the student MATRIC in the course CODE."""
    require("admin")
    portal = get_portal()
    target = find_student(portal, matric)
    target_course = find_course(portal, code)
    portal.registry.enroll(target.id, target_course.id, semester)
    click.secho(f"{matric} is enrolled in {code}", fg="green")


@cli.group()
def result() -> None:
    """Enter and view results."""
    pass


@result.command(name="set")
@click.argument("matric")
@click.argument("code")
@click.argument("score", type=float)
def result_set(matric: str, code: str, score: float) -> None:
    """Enter or update the SCORE of student MATRIC in course CODE."""
    actor = require(*STAFF_ROLES)
    portal = get_portal()
    target = find_student(portal, matric)
    target_course = find_course(portal, code)
    saved = portal.results.upsert_result(target.id, target_course.id, score, actor)
    click.secho(f"{matric} {code}: {saved.score} ({saved.grade})", fg="green")


@result.command(name="list")
@click.argument("matric", required=False)
def result_list(matric: Optional[str]) -> None:
    user = require(*ROLES)
    portal = get_portal()
    if user.role == "student":
        own = portal.registry.get_student_by_user_id(user.id)
        results = portal.results.get_results_for_student(own.id) if own else []
    elif matric:
        results = portal.results.get_results_for_student(find_student(portal, matric).id)
    else:
        results = portal.results.get_results()

    if not results:
        click.secho("No results found.", fg="yellow")
        return
    courses = {c.id: c for c in portal.registry.get_courses()}
    students = {s.id: s for s in portal.registry.get_students()}
    for r in results:
        code = courses[r.course_id].code if r.course_id in courses else r.course_id
        std = students[r.student_id].matric if r.student_id in students else r.student_id
        click.echo(f"{std:<15} {code:<10} {r.score:>6} {r.grade}  {r.updated_at} by {r.updated_by}")


@result.command(name="gpa")
@click.argument("matric")
def result_gpa(matric: str) -> None:
    require(*STAFF_ROLES)
    portal = get_portal()
    click.echo(portal.results.calc_gpa(find_student(portal, matric).id))


@cli.group()
def material() -> None:
    """Course materials."""
    pass


@material.command(name="upload")
@click.argument("code")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", default=None, help="Title (default: file name)")
@click.option("--type", "material_type", default="document")
def material_upload(
    code: str, file_path: str, title: Optional[str], material_type: str
) -> None:
    user = require(*STAFF_ROLES)
    portal = get_portal()
    target_course = find_course(portal, code)
    with open(file_path, "rb") as f:
        content = f.read()
    filename = os.path.basename(file_path)
    saved = portal.materials.upload_material(
        course_id=target_course.id,
        title=title or filename,
        type=material_type,
        filename=filename,
        data=encode_payload(content),
        size=len(content),
        uploaded_by=user,
    )
    click.secho(f"Uploaded {filename} to {code} ({saved.id})", fg="green")


@material.command(name="list")
@click.argument("code", required=False)
def material_list(code: Optional[str]) -> None:
    """List materials; students see materials of their enrolled courses."""
    user = require(*ROLES)
    portal = get_portal()
    if user.role == "student":
        own = portal.registry.get_student_by_user_id(user.id)
        materials = portal.materials.get_materials_for_student(own.id) if own else []
    elif code:
        materials = portal.materials.get_materials_for_course(find_course(portal, code).id)
    else:
        materials = portal.materials.get_materials()

    if not materials:
        click.secho("No materials found.", fg="yellow")
        return
    for m in materials:
        click.echo(f"{m.id:<30} {m.title:<30} {m.filename:<25} {m.size:>8} bytes  {m.uploader_name}")


@material.command(name="download")
@click.argument("material_id")
@click.argument("destination", type=click.Path(dir_okay=False, writable=True))
def material_download(material_id: str, destination: str) -> None:
    user = require(*ROLES)
    portal = get_portal()
    if user.role == "student":
        own = portal.registry.get_student_by_user_id(user.id)
        materials = portal.materials.get_materials_for_student(own.id) if own else []
    else:
        materials = portal.materials.get_materials()
    found = next((m for m in materials if m.id == material_id), None)
    if found is None:
        fail(f"No material found with id {material_id}")
        return
    with open(destination, "wb") as f:
        f.write(found.payload())
    click.secho(f"Saved {found.filename} to {destination}", fg="green")


@material.command(name="delete")
@click.argument("material_id")
def material_delete(material_id: str) -> None:
    require(*STAFF_ROLES)
    get_portal().materials.delete_material(material_id)
    click.echo(f"Deleted {material_id}")


@cli.command()
def audit() -> None:
    """Show the grade audit trail."""
    require("admin")
    trail = get_portal().audit.get_audit_trail()
    if not trail:
        click.secho("Audit trail is empty.", fg="yellow")
        return
    for e in trail:
        click.echo(
            f"{e.ts}  {e.actor_name:<25} {e.student_id} {e.course_id} "
            f"{e.old_grade} -> {e.new_grade}  {e.reason}"
        )


@cli.group()
def feedback() -> None:
    """Portal feedback."""
    pass


@feedback.command(name="submit")
@click.option("--ease-of-use", type=click.IntRange(1, 5), required=True)
@click.option("--speed", type=click.IntRange(1, 5), required=True)
@click.option("--satisfaction", type=click.IntRange(1, 5), required=True)
@click.option("--comments", default="")
def feedback_submit(ease_of_use: int, speed: int, satisfaction: int, comments: str) -> None:
    user = require(*ROLES)
    get_portal().feedback.submit_feedback(
        user_id=user.id,
        user_name=user.name,
        role=user.role,
        ease_of_use=ease_of_use,
        speed=speed,
        satisfaction=satisfaction,
        comments=comments,
    )
    click.secho("Thank you for your feedback.", fg="green")


@feedback.command(name="list")
def feedback_list() -> None:
    require("admin")
    entries = get_portal().feedback.get_feedback()
    if not entries:
        click.secho("No feedback yet.", fg="yellow")
        return
    for f in entries:
        click.echo(
            f"{f.submitted_at}  {f.user_name:<25} {f.role:<9} "
            f"ease={f.ease_of_use} speed={f.speed} satisfaction={f.satisfaction}  {f.comments}"
        )


@cli.group()
def export() -> None:
    """Export portal data."""
    pass


@export.command(name="results")
@click.option("--output-dir", default="exports", show_default=True)
def export_results_cmd(output_dir: str) -> None:
    """Export results and the audit trail to Excel."""
    require("admin")
    export_results(get_portal(), output_dir)


if __name__ == "__main__":
    cli()
