from __future__ import annotations

DEFAULT_SYSTEM_PROMPT = """You are an expert in CV optimization for ATS (Applicant Tracking Systems).

JOB OFFER:
{jobDescription}

ORIGINAL CV (structured JSON format):
{cvText}

INSTRUCTIONS:
{instructions}

Your task:
1. Extract the job title and company name from the offer
2. Optimize the CV according to the specified mode (keeping the JSON structure)
3. Calculate a matching score (0-100) between the optimized CV and the offer
4. List the main changes made
5. Provide additional suggestions

IMPORTANT GUIDELINES:
- The optimized CV must maintain the same JSON structure as the original CV
- ALL content in the JSON must be IN {lang} (descriptions, changes, suggestions, etc.)
- For skills: keep ONLY the 8-10 MOST relevant skills from the original CV for this offer, and add relevant technical keywords from the offer (maximum 10 skills total)
- For experience descriptions: be straight to the point, concise, and relevant to the job offer. Focus on achievements and metrics where possible.

Respond ONLY with a JSON object IN {lang} (no text before or after):
{structure}"""

DEFAULT_INSTRUCTION_LIGHT = (
    "Light Mode: Subtle optimization improving keywords and clarity without changing "
    "the core content. Focus on correcting errors and improving professional phrasing."
)

DEFAULT_INSTRUCTION_NORMAL = (
    "Normal Mode: Balance between fidelity and optimization. Rephrase bullet points to be "
    "more impact-oriented. Add relevant keywords from the job offer where appropriate. "
    "Ensure the tone is confident and professional."
)

DEFAULT_INSTRUCTION_AGGRESSIVE = (
    "Aggressive Mode: Maximize matching score. Heavily reformulate to align with the offer. "
    "Massively integrate keywords. Reorganize structure to highlight relevant elements. "
    "Detail relevant experiences. If highly relevant, you can add 1-2 realistic tasks to "
    "RECENT experiences only if consistent."
)

DEFAULT_INSTRUCTIONS: dict[str, str] = {
    "light": DEFAULT_INSTRUCTION_LIGHT,
    "normal": DEFAULT_INSTRUCTION_NORMAL,
    "aggressive": DEFAULT_INSTRUCTION_AGGRESSIVE,
}

DEFAULT_STRUCTURE_PROMPT = """{
  "optimizedCV": {
    "name": "First Last",
    "email": "email@example.com",
    "phone": "+33612345678",
    "about": "Optimized professional description IN {lang}",
    "skills": ["Skill 1", "Skill 2"],
    "experience": [
      {
        "title": "Job title",
        "company": "Company",
        "period": "Period",
        "description": "Optimized description IN {lang} (concise & relevant)"
      }
    ],
    "education": [
      {
        "degree": "Degree",
        "institution": "Institution",
        "period": "Period"
      }
    ],
    "languages": [
      {
        "name": "Language",
        "level": "Level"
      }
    ],
    "hobbies": ["Hobby 1"],
    "certifications": ["Certification 1"]
  },
  "jobTitle": "job title extracted from the offer IN {lang}",
  "company": "company name (or 'Not specified' if absent)",
  "matchScore": number between 0 and 100,
  "changes": ["list IN {lang} of main changes made"],
  "suggestions": ["additional suggestions IN {lang} to improve the application"]
}"""

RESUME_CLASSIFIER_PROMPT = """Analyze the following text and determine whether it is a CV (curriculum vitae / resume).

Text to analyze:
{text}

Respond ONLY with a JSON object in the following format (no text before or after):
{{
  "isMatch": true or false,
  "confidence": number between 0 and 1 (your confidence level),
  "reason": "short explanation of why this is or is not a CV"
}}

A CV typically contains:
- Personal information (name, email, phone)
- Professional experience
- Skills
- Education
- Possibly languages, certifications, projects

If the document is a contract, a cover letter, a report, an invoice, or any other kind of document, answer isMatch: false."""

JOB_POSTING_CLASSIFIER_PROMPT = """Analyze the following text and determine whether it is a job posting.

Text to analyze:
{text}

Respond ONLY with a JSON object in the following format (no text before or after):
{{
  "isMatch": true or false (true if this is a job posting),
  "confidence": number between 0 and 1 (your confidence level),
  "reason": "COMPLETE and WELL-FORMATTED summary of the offer. If this is a job posting, structure the summary with clear sections and bullet lists: job title, company, missions (one bullet per mission), required skills (one bullet per skill), tools/technologies (one bullet per tool), experience required, contract type, location, benefits. Separate sections with line breaks (\\n). If this is not a job posting, explain briefly (max 2 sentences) why the content does not look like one (e.g. login page, blog article, home page)."
}}"""

RESUME_EXTRACTION_PROMPT = """Analyze this CV and extract the following information as strict JSON.

CV:
{text}{identity_section}

Respond ONLY with a JSON object in the following format (no text before or after, just the JSON):
{{
  "name": "Full name",
  "email": "email@example.com",
  "phone": "+33612345678",
  "about": "Professional summary or profile description",
  "skills": ["Skill 1", "Skill 2", "Skill 3"],
  "experience": [
    {{
      "title": "Job title",
      "company": "Company name",
      "period": "Jan 2020 - Dec 2022",
      "description": "Description of responsibilities"
    }}
  ],
  "education": [
    {{
      "degree": "Degree obtained",
      "institution": "Institution name",
      "period": "2015 - 2018"
    }}
  ],
  "languages": [
    {{
      "name": "French",
      "level": "Native"
    }}
  ],
  "hobbies": ["Hobby 1", "Hobby 2"],
  "certifications": ["Certification 1", "Certification 2"]
}}

IMPORTANT:
- If a piece of information is not found, use an empty string "" or an empty array []
- The JSON must be valid and parseable
- Do NOT add any text before or after the JSON
- All fields must be present even if empty"""

IDENTITY_HINTS_SECTION = """

INFORMATION PROVIDED BY THE USER:
{hints}

HOW TO USE THE USER INFORMATION:
- Compare the personal information in the CV with the information provided by the user
- If the CV's personal information matches the user's (same name, similar email), PREFER the user's values to correct OCR or extraction errors
- If the CV's personal information is DIFFERENT (different name, unrelated email), the user is probably analyzing someone else's CV. In that case KEEP THE CV's VALUES and ignore the user information
- Use your judgment to decide whether this is the same person
- Examples where the user values apply: email misread by OCR, different phone format, name with badly extracted accents
- Examples where the CV values apply: completely different name, email domain different from the CV's"""

JOB_DETAILS_PROMPT = """Analyze this job offer in detail and extract all structured information.

JOB OFFER:
{text}

Respond ONLY with a JSON object in the following format (no text before or after):
{{
  "jobTitle": "exact job title (MAX 35 characters, shorten if needed)",
  "company": "company name (MAX 35 characters, shorten if needed, or 'Not specified' if absent)",
  "location": "city/region (or null if absent)",
  "keywords": ["list", "of", "important", "keywords"],
  "tools": ["tool 1", "tool 2", "technology 1"],
  "requiredSkills": ["required skill 1", "required skill 2"],
  "preferredSkills": ["preferred skill 1"],
  "profile": "description of the expected profile in a few lines",
  "missions": ["mission 1", "mission 2", "mission 3"],
  "contractType": "Permanent/Fixed-term/Internship/Freelance/etc (or null if absent)",
  "salary": "salary range if mentioned (or null if absent)",
  "benefits": ["benefit 1", "benefit 2"]
}}

IMPORTANT:
- Extract as much information as possible
- If a piece of information is absent, use null for strings or [] for arrays
- For keywords, extract the most important ones (sector, domain, main technologies)
- For tools, list ALL tools/technologies/languages mentioned
- STRICT LIMIT: jobTitle and company must NEVER exceed 35 characters. Abbreviate sensibly if needed"""
