"""deadline-sync: course portal and syllabus deadlines -> reminders."""
