"""
MJML email templates for consultation decisions.

Templates return MJML; ``EmailService`` compiles them to HTML before sending.
"""

from html import escape

THEME = {
    "primary": "#2563eb",
    "background": "#f3f4f6",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_secondary": "#4b5563",
    "text_muted": "#9ca3af",
    "border": "#e5e7eb",
    "danger_bg": "#fef2f2",
    "danger_text": "#7f1d1d",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    app_url: str,
    cta_url: str | None = None,
    cta_label: str | None = None,
) -> str:
    """Base MJML layout shared by every FormConsult email."""
    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="0 40px 40px 40px">
          <mj-column>
            <mj-button
              href="{escape(cta_url)}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="0">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{escape(title)}</mj-title>
        <mj-preview>{escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="40px 40px 24px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {escape(title)}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 16px 0" />
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              FormConsult - <a href="{escape(app_url)}" style="color: {THEME['text_muted']};">{escape(app_url)}</a>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details(consultation_title: str, decided_by_label: str, admin_name: str, company_name: str) -> str:
    return f"""
    <mj-text padding="8px 0 8px 20px">
      <strong>Subject:</strong> {escape(consultation_title)}<br/>
      <strong>{decided_by_label}:</strong> {escape(admin_name)}<br/>
      <strong>Company:</strong> {escape(company_name)}
    </mj-text>
    """


def consultation_approved_template(
    user_name: str,
    consultation_title: str,
    company_name: str,
    admin_name: str,
    dashboard_url: str,
    app_url: str,
) -> str:
    """Email sent to the requester when a consultation is confirmed."""
    content = f"""
    <mj-text>
      Hello <strong>{escape(user_name)}</strong>,
    </mj-text>

    <mj-text>
      Good news! Your consultation request has been approved by <strong>{escape(company_name)}</strong>.
    </mj-text>

    {_details(consultation_title, "Approved by", admin_name, company_name)}

    <mj-text>
      You will be notified as soon as your session slot is available.
    </mj-text>
    """

    return get_base_template(
        title="Consultation request approved",
        preview_text=f"Approved: {consultation_title}",
        content_sections=content,
        app_url=app_url,
        cta_url=dashboard_url,
        cta_label="View my request",
    )


def consultation_rejected_template(
    user_name: str,
    consultation_title: str,
    company_name: str,
    admin_name: str,
    dashboard_url: str,
    app_url: str,
    rejection_reason: str | None = None,
) -> str:
    """Email sent to the requester when a consultation is canceled."""
    reason_block = ""
    if rejection_reason:
        reason_block = f"""
    <mj-text container-background-color="{THEME['danger_bg']}" color="{THEME['danger_text']}" padding="15px">
      <strong>Reason:</strong><br/>
      {escape(rejection_reason)}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hello <strong>{escape(user_name)}</strong>,
    </mj-text>

    <mj-text>
      Your consultation request could not be accepted by <strong>{escape(company_name)}</strong>.
    </mj-text>

    {_details(consultation_title, "Decision by", admin_name, company_name)}

    {reason_block}

    <mj-text>
      You can adjust your request and submit it again, or contact your manager for more information.
    </mj-text>
    """

    return get_base_template(
        title="Consultation request declined",
        preview_text=f"Declined: {consultation_title}",
        content_sections=content,
        app_url=app_url,
        cta_url=dashboard_url,
        cta_label="Open my dashboard",
    )
