# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

# Realtime Database path holding one document per participant.
PARTICIPANTS_PATH = "participants"

PARTICIPANT_NUMBER_NOT_AVAILABLE = "Not Available"

WEEKLY_UPDATE_INTERVAL_DAYS = 7
MONTHLY_CHECK_IN_INTERVAL_DAYS = 30
MONTHLY_REPORT_INTERVAL_DAYS = 30
INITIAL_CONTACT_WINDOW_DAYS = 10

# A participant is moved to unable_to_contact once this many attempts have
# been made over at least this many days.
UNABLE_TO_CONTACT_ATTEMPTS = 3
UNABLE_TO_CONTACT_MIN_DAYS = 30

MAX_NOTE_LENGTH = 5000
MAX_FORM_TEXT_LENGTH = 5000
MAX_NAME_LENGTH = 200
