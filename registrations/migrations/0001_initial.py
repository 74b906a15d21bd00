from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=128)),
                ('country', models.CharField(max_length=64)),
                ('city', models.CharField(max_length=64)),
                ('date_of_birth', models.CharField(max_length=32)),
                ('marital_status', models.CharField(max_length=32)),
                ('occupation', models.CharField(max_length=128)),
                ('salary', models.CharField(max_length=64)),
                ('email', models.EmailField(max_length=254)),
                ('phone', models.CharField(max_length=32)),
                ('payment_method', models.CharField(max_length=64)),
                ('personal_photo_url', models.URLField(max_length=500)),
                ('id_card_front_url', models.URLField(max_length=500)),
                ('id_card_back_url', models.URLField(blank=True, default='', max_length=500)),
                ('unique_code', models.CharField(blank=True, db_index=True, default='', max_length=16)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ('-created_at',),
            },
        ),
    ]
