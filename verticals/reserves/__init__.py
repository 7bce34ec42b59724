"""Course reserves vertical.

- Browse trees by instructor or course from flat reserve tags
- Eligibility validation with streaming video correction
- Reserve request emails, split by video and non-video
"""
