# =============================================================================
# Services Package - Business Logic
# =============================================================================
#   - otp.py / auth.py:           phone OTP signup and login
#   - questions.py:               submission pipeline and read path
#   - analysis.py / mock_llm.py:  categorisation and answer collaborators
#   - llm.py:                     provider SDK wrappers
#   - storage.py / sql_storage.py: store protocols and backends
#   - dashboard.py, session.py, sample_data.py, validation.py
# =============================================================================
