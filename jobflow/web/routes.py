"""
Pages and JSON endpoints, one group per view panel.
"""

from io import BytesIO

from flask import (
    Blueprint, abort, current_app, flash, jsonify, redirect,
    render_template, request, send_file, session, url_for,
)
from pydantic import ValidationError

from jobflow.models import JobStatus, SectionKind, UserProfile, new_id
from jobflow.services import AIServiceError, STYLE_PRESETS
from jobflow.services.job_service import (
    ALL_STATUSES, create_job_from_form, is_status_filter, job_fields_from_form,
)
from jobflow.services.stats_service import applications_per_day, compute_stats
from jobflow.utils.docx_formatter import DocxFormatter
from jobflow.utils.file_utils import read_upload_as_base64, to_data_url
from jobflow.utils.logger import get_logger
from jobflow.web.navigation import NAV_ITEMS, SETTINGS_ITEM, VIEW_ENDPOINTS, ViewState

logger = get_logger(__name__)

bp = Blueprint("jobflow", __name__)

NO_DESCRIPTION = "Please add a job description to this application first."
RESUME_IMPORT_ERROR = "Failed to analyze resume. Please try again."
RESUME_AVATAR_ERROR = "Failed to generate avatar. Showing original image."
STUDIO_ERROR = "Failed to generate avatar. Please ensure you have selected a valid API Key."
REQUIRED_FIELDS = "Company and role are required."

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def services():
    return current_app.extensions["jobflow"]


def session_state():
    if "sid" not in session:
        session["sid"] = new_id()
    return services().session_state(session["sid"])


def ensure_chat(state):
    """Chat for this session, refreshed with the current job statistics."""
    job_store = services().job_store
    if state.chat is None:
        state.chat = services().ai_service.create_coach_chat(
            job_store.jobs, job_store.user_profile.full_name
        )
    else:
        state.chat.refresh_context(job_store.jobs, job_store.user_profile.full_name)
    return state.chat


@bp.app_context_processor
def inject_navigation():
    return {
        "nav_items": NAV_ITEMS,
        "settings_item": SETTINGS_ITEM,
        "profile": services().job_store.user_profile,
    }


# ----------------------------------------------------------------------
# View router
# ----------------------------------------------------------------------

@bp.route('/view/<name>')
def view(name: str):
    """Route a view value to its page."""
    try:
        view_state = ViewState(name)
    except ValueError:
        abort(404)
    return redirect(url_for(VIEW_ENDPOINTS[view_state]))


# ----------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------

@bp.route('/')
def dashboard():
    jobs = services().job_store.jobs
    chart = applications_per_day(jobs)
    return render_template(
        'dashboard.html',
        current_view=ViewState.DASHBOARD,
        stats=compute_stats(jobs),
        chart=chart,
        chart_max=max([point["applications"] for point in chart] + [1]),
    )


# ----------------------------------------------------------------------
# Applications
# ----------------------------------------------------------------------

def _render_jobs(form_data=None, editing_id=None, error=None, status_code=200):
    job_store = services().job_store
    status = request.args.get('status', ALL_STATUSES)
    search = request.args.get('q', '')
    return render_template(
        'jobs.html',
        current_view=ViewState.JOBS,
        jobs=job_store.filter_jobs(status, search),
        statuses=list(JobStatus),
        filter_status=status,
        search=search,
        form_open=form_data is not None,
        form_data=form_data or {},
        editing_id=editing_id,
        error=error,
    ), status_code


@bp.route('/jobs', methods=['GET'])
def jobs():
    job_store = services().job_store
    edit_id = request.args.get('edit')
    if edit_id:
        job = job_store.get_job(edit_id)
        if job is None:
            abort(404)
        return _render_jobs(form_data=job.model_dump(mode='json'), editing_id=job.id)
    if request.args.get('new'):
        return _render_jobs(form_data={"status": JobStatus.APPLIED.value})
    return _render_jobs()


@bp.route('/jobs', methods=['POST'])
def create_job():
    try:
        job = create_job_from_form(request.form)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        message = REQUIRED_FIELDS if not isinstance(e, ValidationError) else f"Invalid application: {e}"
        return _render_jobs(form_data=request.form.to_dict(), error=message, status_code=400)

    services().job_store.add_job(job)
    flash(f"Added {job.role} at {job.company}", "success")
    return redirect(url_for('jobflow.jobs'))


@bp.route('/jobs/<job_id>', methods=['POST'])
def update_job(job_id: str):
    job_store = services().job_store
    if job_store.get_job(job_id) is None:
        abort(404)

    fields = job_fields_from_form(request.form)
    if not fields.get("company") or not fields.get("role"):
        return _render_jobs(form_data=request.form.to_dict(), editing_id=job_id,
                            error=REQUIRED_FIELDS, status_code=400)
    try:
        job_store.update_job(job_id, fields)
    except ValidationError as e:
        return _render_jobs(form_data=request.form.to_dict(), editing_id=job_id,
                            error=f"Invalid application: {e}", status_code=400)

    flash("Application updated", "success")
    return redirect(url_for('jobflow.jobs'))


@bp.route('/jobs/<job_id>/delete', methods=['POST'])
def delete_job(job_id: str):
    if not services().job_store.delete_job(job_id):
        abort(404)
    flash("Application deleted", "success")
    return redirect(url_for('jobflow.jobs'))


@bp.route('/api/jobs', methods=['GET'])
def api_jobs():
    status = request.args.get('status', ALL_STATUSES)
    if not is_status_filter(status):
        return jsonify({'error': f"Unknown status filter: {status}"}), 400
    jobs = services().job_store.filter_jobs(status, request.args.get('q', ''))
    return jsonify([job.to_dict() for job in jobs])


@bp.route('/api/cover-letter', methods=['POST'])
def api_cover_letter():
    """Draft a cover letter for the job form being edited."""
    data = request.get_json(silent=True) or {}
    role = (data.get('role') or '').strip()
    company = (data.get('company') or '').strip()
    if not role or not company:
        return jsonify({'error': 'Please provide both role and company'}), 400

    skills = services().job_store.user_profile.skills
    letter = services().ai_service.generate_cover_letter(role, company, skills)
    return jsonify({'cover_letter': letter})


# ----------------------------------------------------------------------
# Offers & interview
# ----------------------------------------------------------------------

@bp.route('/offers')
def offers():
    job_store = services().job_store
    offer_jobs = job_store.offer_jobs()
    selected_id = request.args.get('job')
    selected = next((job for job in offer_jobs if job.id == selected_id), None)
    return render_template(
        'offers.html',
        current_view=ViewState.OFFERS,
        offer_jobs=offer_jobs,
        selected=selected,
    )


@bp.route('/offers/<job_id>/guide', methods=['POST'])
def interview_guide(job_id: str):
    job_store = services().job_store
    job = job_store.get_job(job_id)
    if job is None:
        abort(404)

    if not job.description.strip():
        flash(NO_DESCRIPTION, "error")
    else:
        guide = services().ai_service.generate_interview_guide(job.role, job.company, job.description)
        job_store.set_interview_guide(job.id, guide)

    return redirect(url_for('jobflow.offers', job=job.id))


# ----------------------------------------------------------------------
# Resume builder
# ----------------------------------------------------------------------

RESUME_FIELDS = ("full_name", "title", "email", "phone", "location", "summary", "skills")


def _section_kind_or_404(kind: str) -> SectionKind:
    try:
        return SectionKind(kind)
    except ValueError:
        abort(404)


@bp.route('/resume', methods=['GET', 'POST'])
def resume():
    resume_store = services().resume_store
    if request.method == 'POST':
        changes = {name: request.form[name] for name in RESUME_FIELDS if name in request.form}
        resume_store.update_resume(changes)
        return redirect(url_for('jobflow.resume'))

    return render_template(
        'resume.html',
        current_view=ViewState.RESUME,
        resume=resume_store.resume,
        section_kinds=list(SectionKind),
    )


@bp.route('/resume/sections/<kind>', methods=['POST'])
def add_section(kind: str):
    services().resume_store.add_section(_section_kind_or_404(kind))
    return redirect(url_for('jobflow.resume'))


@bp.route('/resume/sections/<kind>/<section_id>', methods=['POST'])
def update_section(kind: str, section_id: str):
    changes = {name: request.form[name] for name in ("title", "subtitle", "date", "content") if name in request.form}
    if services().resume_store.update_section(_section_kind_or_404(kind), section_id, changes) is None:
        abort(404)
    return redirect(url_for('jobflow.resume'))


@bp.route('/resume/sections/<kind>/<section_id>/delete', methods=['POST'])
def remove_section(kind: str, section_id: str):
    if not services().resume_store.remove_section(_section_kind_or_404(kind), section_id):
        abort(404)
    return redirect(url_for('jobflow.resume'))


@bp.route('/resume/import', methods=['POST'])
def import_resume():
    """Parse an uploaded resume image and merge the result."""
    upload = request.files.get('resume_image')
    if upload is None or not upload.filename:
        flash("Choose a resume image to import.", "error")
        return redirect(url_for('jobflow.resume'))

    try:
        image, mime_type = read_upload_as_base64(upload)
        parsed = services().ai_service.parse_resume_image(image, mime_type)
        services().resume_store.apply_parsed_resume(parsed)
    except (AIServiceError, ValueError) as e:
        logger.error(f"Error importing resume: {e}")
        flash(RESUME_IMPORT_ERROR, "error")
    else:
        flash("Resume imported", "success")

    return redirect(url_for('jobflow.resume'))


@bp.route('/resume/avatar', methods=['POST'])
def resume_avatar():
    """Show the uploaded photo right away, then swap in an AI headshot."""
    upload = request.files.get('avatar')
    if upload is None or not upload.filename:
        flash("Choose a photo to upload.", "error")
        return redirect(url_for('jobflow.resume'))

    resume_store = services().resume_store
    try:
        image, mime_type = read_upload_as_base64(upload)
    except ValueError:
        flash("Choose a photo to upload.", "error")
        return redirect(url_for('jobflow.resume'))

    resume_store.update_resume({"avatar": to_data_url(image, mime_type)})
    try:
        headshot = services().ai_service.generate_professional_headshot(image, mime_type)
    except AIServiceError as e:
        logger.error(f"Error generating headshot: {e}")
        flash(RESUME_AVATAR_ERROR, "error")
    else:
        resume_store.update_resume({"avatar": to_data_url(headshot)})

    return redirect(url_for('jobflow.resume'))


@bp.route('/resume/export.docx')
def export_resume():
    resume_data = services().resume_store.resume
    document = DocxFormatter().to_bytes(resume_data)
    return send_file(
        BytesIO(document),
        mimetype=DOCX_MIMETYPE,
        as_attachment=True,
        download_name="resume.docx",
    )


# ----------------------------------------------------------------------
# Claire
# ----------------------------------------------------------------------

@bp.route('/claire', methods=['GET', 'POST'])
def claire():
    chat = ensure_chat(session_state())
    if request.method == 'POST':
        chat.send(request.form.get('message', ''))
        return redirect(url_for('jobflow.claire'))

    return render_template('claire.html', current_view=ViewState.CLAIRE, messages=chat.messages)


@bp.route('/api/claire/messages', methods=['POST'])
def api_claire_message():
    data = request.get_json(silent=True) or {}
    chat = ensure_chat(session_state())
    reply = chat.send(data.get('message') or '')
    if reply is None:
        return jsonify({'error': 'Message is empty'}), 400
    return jsonify({
        'reply': reply.to_dict(),
        'messages': [message.to_dict() for message in chat.messages],
    })


# ----------------------------------------------------------------------
# Avatar studio
# ----------------------------------------------------------------------

def _render_studio():
    return render_template(
        'avatar_builder.html',
        current_view=ViewState.AVATAR_BUILDER,
        studio=session_state().studio,
        presets=STYLE_PRESETS,
    )


@bp.route('/avatar-builder', methods=['GET', 'POST'])
def avatar_builder():
    if request.method == 'POST':
        upload = request.files.get('source')
        if upload is None or not upload.filename:
            flash("Choose an image to upload.", "error")
        else:
            try:
                image, mime_type = read_upload_as_base64(upload)
            except ValueError:
                flash("Choose an image to upload.", "error")
            else:
                session_state().studio.upload(image, mime_type)
        return redirect(url_for('jobflow.avatar_builder'))

    return _render_studio()


@bp.route('/avatar-builder/preset', methods=['POST'])
def select_preset():
    if not session_state().studio.select_preset(request.form.get('preset', '')):
        abort(400)
    return redirect(url_for('jobflow.avatar_builder'))


@bp.route('/avatar-builder/generate', methods=['POST'])
def generate_avatar():
    studio = session_state().studio
    try:
        studio.generate(services().ai_service, request.form.get('prompt'))
    except ValueError as e:
        flash(str(e), "error")
    except AIServiceError as e:
        logger.error(f"Generation failed: {e}")
        flash(STUDIO_ERROR, "error")

    return redirect(url_for('jobflow.avatar_builder'))


@bp.route('/avatar-builder/save', methods=['POST'])
def save_avatar():
    studio = session_state().studio
    if not studio.generated_image:
        flash("Generate an avatar first.", "error")
    else:
        services().resume_store.update_resume({"avatar": studio.generated_image})
        flash("Avatar saved to your resume", "success")
    return redirect(url_for('jobflow.avatar_builder'))


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------

@bp.route('/settings', methods=['GET', 'POST'])
def settings_view():
    job_store = services().job_store
    if request.method == 'POST':
        profile = UserProfile(
            full_name=request.form.get('full_name', '').strip(),
            skills=request.form.get('skills', ''),
        )
        job_store.update_user_profile(profile)
        flash("Saved!", "success")
        return redirect(url_for('jobflow.settings_view'))

    return render_template('settings.html', current_view=ViewState.SETTINGS)
